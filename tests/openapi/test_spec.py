"""Unit tests for spec loading, dereferencing and parsing."""

import json
import os
import tempfile
import unittest
from unittest.mock import patch

import yaml

from swagger_mcp.openapi.exceptions import SchemaResolutionError, SpecLoadError
from swagger_mcp.openapi.models import SecuritySchemeKind
from swagger_mcp.openapi.spec import (
    OpenAPISpecParser,
    dereference_spec,
    extract_security_schemes,
    load_spec,
    resolve_pointer,
)
from tests.fixtures.specs import items_spec, petstore_spec


class TestResolvePointer(unittest.TestCase):
    """Tests for resolve_pointer."""

    def setUp(self):
        self.document = {
            "components": {"schemas": {"Pet": {"type": "object"}, "a/b": {"type": "string"}}},
            "list": [{"type": "integer"}, {"type": "boolean"}],
        }

    def test_resolves_local_pointer(self):
        self.assertEqual(
            resolve_pointer(self.document, "#/components/schemas/Pet"), {"type": "object"}
        )

    def test_unescapes_segments(self):
        self.assertEqual(
            resolve_pointer(self.document, "#/components/schemas/a~1b"), {"type": "string"}
        )

    def test_indexes_lists(self):
        self.assertEqual(resolve_pointer(self.document, "#/list/1"), {"type": "boolean"})

    def test_rejects_external_reference(self):
        with self.assertRaises(SchemaResolutionError):
            resolve_pointer(self.document, "other.yaml#/Pet")

    def test_rejects_dangling_reference(self):
        with self.assertRaises(SchemaResolutionError) as ctx:
            resolve_pointer(self.document, "#/components/schemas/Missing")
        self.assertIn("#/components/schemas/Missing", str(ctx.exception))


class TestDereferenceSpec(unittest.TestCase):
    """Tests for dereference_spec."""

    def test_inlines_references(self):
        spec = petstore_spec()
        result = dereference_spec(spec)

        body = result["paths"]["/pets"]["post"]["parameters"][0]
        self.assertEqual(body["schema"]["type"], "object")
        self.assertIn("name", body["schema"]["properties"])

    def test_does_not_mutate_input(self):
        spec = petstore_spec()
        dereference_spec(spec)
        body = spec["paths"]["/pets"]["post"]["parameters"][0]
        self.assertEqual(body["schema"], {"$ref": "#/definitions/Pet"})

    def test_cycle_is_left_as_reference(self):
        spec = {
            "paths": {},
            "components": {
                "schemas": {
                    "Node": {
                        "type": "object",
                        "properties": {"child": {"$ref": "#/components/schemas/Node"}},
                    }
                }
            },
        }
        result = dereference_spec(spec)
        child = result["components"]["schemas"]["Node"]["properties"]["child"]
        self.assertEqual(child["type"], "object")
        self.assertEqual(
            child["properties"]["child"], {"$ref": "#/components/schemas/Node"}
        )

    def test_dangling_reference_raises(self):
        spec = {"paths": {"/a": {"get": {"parameters": [{"$ref": "#/parameters/nope"}]}}}}
        with self.assertRaises(SchemaResolutionError):
            dereference_spec(spec)


class TestLoadSpec(unittest.TestCase):
    """Tests for load_spec."""

    def test_load_json_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "spec.json")
            with open(path, "w") as f:
                json.dump(petstore_spec(), f)

            spec = load_spec(path)

        self.assertEqual(spec["info"]["title"], "Petstore")
        self.assertNotIn("$ref", json.dumps(spec["paths"]["/pets"]["post"]))

    def test_load_yaml_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "spec.yaml")
            with open(path, "w") as f:
                yaml.safe_dump(items_spec(), f)

            spec = load_spec(path)

        self.assertEqual(spec["info"]["title"], "Items API")

    def test_unsupported_extension(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "spec.txt")
            with open(path, "w") as f:
                f.write("{}")

            with self.assertRaises(SpecLoadError):
                load_spec(path)

    def test_missing_file(self):
        with self.assertRaises(SpecLoadError):
            load_spec("/nonexistent/spec.json")

    @patch("swagger_mcp.openapi.spec.load_spec_from_url")
    def test_url_passes_headers(self, mock_load):
        mock_load.return_value = petstore_spec()

        spec = load_spec("https://example.com/swagger.json", headers={"api_key": "k"})

        mock_load.assert_called_once_with(
            "https://example.com/swagger.json", headers={"api_key": "k"}
        )
        self.assertIn("/pets", spec["paths"])

    @patch("swagger_mcp.openapi.spec.load_spec_from_url")
    def test_document_without_paths(self, mock_load):
        mock_load.return_value = {"openapi": "3.0.0"}
        with self.assertRaises(SpecLoadError):
            load_spec("https://example.com/openapi.json")

    @patch("swagger_mcp.openapi.spec.load_spec_from_url")
    def test_fetch_failure(self, mock_load):
        mock_load.side_effect = ConnectionError("unreachable")
        with self.assertRaises(SpecLoadError) as ctx:
            load_spec("https://example.com/openapi.json")
        self.assertIn("unreachable", str(ctx.exception))


class TestSecuritySchemes(unittest.TestCase):
    """Tests for extract_security_schemes."""

    def test_kinds(self):
        spec = {
            "components": {
                "securitySchemes": {
                    "legacyBasic": {"type": "basic"},
                    "httpBasic": {"type": "http", "scheme": "Basic"},
                    "httpBearer": {"type": "http", "scheme": "bearer"},
                    "legacyBearer": {"type": "bearer"},
                    "headerKey": {"type": "apiKey", "in": "header", "name": "X-Key"},
                    "queryKey": {"type": "apiKey", "in": "query", "name": "key"},
                    "session": {"type": "apiKey", "in": "cookie", "name": "sid"},
                    "oauth": {"type": "oauth2", "flows": {}},
                    "oidc": {"type": "openIdConnect", "openIdConnectUrl": "https://x"},
                    "digest": {"type": "http", "scheme": "digest"},
                }
            }
        }
        schemes = extract_security_schemes(spec)

        self.assertEqual(schemes["legacyBasic"].kind, SecuritySchemeKind.basic)
        self.assertEqual(schemes["httpBasic"].kind, SecuritySchemeKind.basic)
        self.assertEqual(schemes["httpBearer"].kind, SecuritySchemeKind.bearer)
        self.assertEqual(schemes["legacyBearer"].kind, SecuritySchemeKind.bearer)
        self.assertEqual(schemes["headerKey"].kind, SecuritySchemeKind.apiKey)
        self.assertEqual(schemes["headerKey"].location, "header")
        self.assertEqual(schemes["headerKey"].name, "X-Key")
        self.assertEqual(schemes["queryKey"].location, "query")
        self.assertEqual(schemes["session"].kind, SecuritySchemeKind.cookie)
        self.assertEqual(schemes["oauth"].kind, SecuritySchemeKind.oauth2)
        self.assertNotIn("oidc", schemes)
        self.assertNotIn("digest", schemes)
        self.assertEqual(
            list(schemes),
            [
                "legacyBasic",
                "httpBasic",
                "httpBearer",
                "legacyBearer",
                "headerKey",
                "queryKey",
                "session",
                "oauth",
            ],
        )

    def test_prefers_components(self):
        spec = {
            "securityDefinitions": {"old": {"type": "basic"}},
            "components": {"securitySchemes": {"new": {"type": "oauth2"}}},
        }
        self.assertEqual(list(extract_security_schemes(spec)), ["new"])

    def test_legacy_location(self):
        schemes = extract_security_schemes(petstore_spec())
        self.assertEqual(list(schemes), ["api_key", "petstore_auth"])

    def test_label_falls_back_to_type(self):
        schemes = extract_security_schemes(items_spec())
        self.assertEqual(schemes["basicAuth"].label, "http")
        self.assertEqual(schemes["bearerAuth"].label, "JWT")


class TestOpenAPISpecParser(unittest.TestCase):
    """Tests for OpenAPISpecParser."""

    def test_base_url_from_servers(self):
        parser = OpenAPISpecParser(items_spec())
        self.assertEqual(parser.get_base_url(), "https://api.example.com/v1")

    def test_base_url_from_swagger2_host(self):
        parser = OpenAPISpecParser(petstore_spec())
        self.assertEqual(parser.get_base_url(), "https://petstore.example.com/v2")

    def test_base_url_prefers_https(self):
        spec = petstore_spec()
        spec["schemes"] = ["http"]
        self.assertEqual(
            OpenAPISpecParser(spec).get_base_url(), "http://petstore.example.com/v2"
        )

    def test_base_url_missing(self):
        self.assertEqual(OpenAPISpecParser({"paths": {}}).get_base_url(), "")

    def test_get_info(self):
        self.assertEqual(OpenAPISpecParser(items_spec()).get_info()["version"], "2.1.0")

    def test_operations_skip_structural_entries(self):
        spec = {
            "paths": {
                "/a": {
                    "$ref": "#/x",
                    "summary": "A",
                    "description": "path item",
                    "parameters": [{"name": "p", "in": "query"}],
                    "servers": [],
                    "get": {},
                    "POST": {},
                },
                "/b": {"delete": {}, "patch": {}, "head": {}},
            }
        }
        operations = list(OpenAPISpecParser(spec).get_operations())

        self.assertEqual(
            [(path, method) for path, method, _, _ in operations],
            [("/a", "get"), ("/a", "post"), ("/b", "delete"), ("/b", "patch"), ("/b", "head")],
        )
        self.assertEqual(operations[0][3], [{"name": "p", "in": "query"}])
        self.assertEqual(operations[2][3], [])

    def test_operation_requirements(self):
        parser = OpenAPISpecParser(items_spec())
        paths = parser.spec["paths"]

        # Operation-level security overrides the global one
        self.assertEqual(
            parser.get_operation_requirements(paths["/items"]["post"]), ["bearerAuth"]
        )
        # Falls back to global security
        self.assertEqual(
            parser.get_operation_requirements(paths["/items"]["get"]), ["basicAuth"]
        )
        # An empty list means no auth
        self.assertEqual(
            parser.get_operation_requirements(paths["/items/{itemId}"]["get"]), []
        )

    def test_operation_requirements_union(self):
        parser = OpenAPISpecParser({"paths": {}})
        operation = {"security": [{"a": [], "b": []}, {"b": [], "c": []}, {}]}
        self.assertEqual(parser.get_operation_requirements(operation), ["a", "b", "c"])


if __name__ == "__main__":
    unittest.main()
