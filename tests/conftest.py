"""Configuration file for pytest."""

import json
import sys
from pathlib import Path

import pytest

# Add the project root to the path so tests can import modules correctly
sys.path.insert(0, str(Path(__file__).parent.parent))

from tests.fixtures.specs import items_spec, petstore_spec  # noqa: E402


@pytest.fixture
def sample_petstore_spec():
    """Return a Swagger 2 petstore specification for testing."""
    return petstore_spec()


@pytest.fixture
def sample_openapi_spec():
    """Return an OpenAPI 3 specification for testing."""
    return items_spec()


@pytest.fixture
def config_file(tmp_path):
    """Write a configuration file pointing at a local spec and return its path."""
    spec_path = tmp_path / "petstore.json"
    spec_path.write_text(json.dumps(petstore_spec()))

    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "swagger": {
                    "url": str(spec_path),
                    "apiBaseUrl": "https://petstore.example.com/v2",
                    "defaultAuth": {"type": "apiKey", "apiKey": "special-key"},
                },
                "log": {"level": "debug"},
                "server": {"host": "127.0.0.1", "port": 8123},
            }
        )
    )
    return str(config_path)
