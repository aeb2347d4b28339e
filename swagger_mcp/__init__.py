"""
Name: Swagger MCP package.
Description: Defines the package version and imports the main CLI function. Swagger MCP exposes every operation of an OpenAPI/Swagger document as a schema-validated MCP tool that calls the real backend.
"""

__version__ = "0.1.0"

from .main import main as cli_main

__all__ = ["cli_main"]
