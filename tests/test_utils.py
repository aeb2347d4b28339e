import json
import logging
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from swagger_mcp.utils import (
    configure_logging,
    load_spec_from_file,
    load_spec_from_url,
    setup_environment,
    substitute_env_vars,
)


class TestConfigureLogging(unittest.TestCase):

    def setUp(self):
        root = logging.getLogger()
        self.original_level = root.level
        self.original_handlers = list(root.handlers)
        self.addCleanup(self.restore)
        root.handlers = []

    def restore(self):
        root = logging.getLogger()
        root.handlers = self.original_handlers
        root.setLevel(self.original_level)

    def test_named_levels(self):
        for name, level in [
            ("debug", logging.DEBUG),
            ("info", logging.INFO),
            ("warn", logging.WARNING),
            ("WARNING", logging.WARNING),
            ("error", logging.ERROR),
        ]:
            configure_logging(name)
            self.assertEqual(logging.getLogger().level, level)

    def test_unknown_name_defaults_to_info(self):
        configure_logging("chatty")
        self.assertEqual(logging.getLogger().level, logging.INFO)

    def test_numeric_level(self):
        configure_logging(logging.ERROR)
        self.assertEqual(logging.getLogger().level, logging.ERROR)

    def test_adds_single_handler(self):
        configure_logging("info")
        configure_logging("debug")
        handlers = logging.getLogger().handlers
        self.assertEqual(len(handlers), 1)
        self.assertEqual(handlers[0].level, logging.DEBUG)


class TestLoadSpecFromFile(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write(self, name, content):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w") as f:
            f.write(content)
        return path

    def test_json(self):
        path = self.write("spec.json", json.dumps({"openapi": "3.0.0", "paths": {}}))
        self.assertEqual(load_spec_from_file(path), {"openapi": "3.0.0", "paths": {}})

    def test_yaml(self):
        for name in ("spec.yaml", "spec.YML"):
            path = self.write(name, "swagger: '2.0'\npaths:\n  /a: {}\n")
            self.assertEqual(load_spec_from_file(path), {"swagger": "2.0", "paths": {"/a": {}}})

    def test_unsupported_extension(self):
        path = self.write("spec.txt", "{}")
        with self.assertRaises(ValueError):
            load_spec_from_file(path)


class TestLoadSpecFromUrl(unittest.TestCase):

    def response(self, content_type, text, json_data=None):
        response = MagicMock()
        response.headers = {"Content-Type": content_type}
        response.text = text
        if json_data is not None:
            response.json.return_value = json_data
        else:
            response.json.side_effect = ValueError("not json")
        return response

    @patch("swagger_mcp.utils.requests.get")
    def test_json_response(self, mock_get):
        mock_get.return_value = self.response(
            "application/json; charset=utf-8", "{}", {"openapi": "3.0.0"}
        )

        spec = load_spec_from_url("https://example.com/spec", headers={"api_key": "k"})

        self.assertEqual(spec, {"openapi": "3.0.0"})
        mock_get.assert_called_once_with(
            "https://example.com/spec", headers={"api_key": "k"}, timeout=30
        )
        mock_get.return_value.raise_for_status.assert_called_once()

    @patch("swagger_mcp.utils.requests.get")
    def test_yaml_response(self, mock_get):
        mock_get.return_value = self.response("application/x-yaml", "swagger: '2.0'\n")
        self.assertEqual(load_spec_from_url("https://example.com/spec"), {"swagger": "2.0"})
        self.assertEqual(mock_get.call_args.kwargs["headers"], {})

    @patch("swagger_mcp.utils.requests.get")
    def test_unknown_content_type_tries_yaml(self, mock_get):
        mock_get.return_value = self.response("text/plain", "openapi: 3.0.0\n")
        self.assertEqual(load_spec_from_url("https://example.com/spec"), {"openapi": "3.0.0"})

    @patch("swagger_mcp.utils.requests.get")
    def test_http_error_propagates(self, mock_get):
        mock_get.return_value.raise_for_status.side_effect = RuntimeError("403")
        with self.assertRaises(RuntimeError):
            load_spec_from_url("https://example.com/spec")


class TestSubstituteEnvVars(unittest.TestCase):

    @patch.dict(os.environ, {"TOKEN": "abc"})
    def test_substitutes(self):
        self.assertEqual(substitute_env_vars("Bearer {TOKEN}"), "Bearer abc")

    def test_missing_variable_keeps_placeholder(self):
        with self.assertLogs("swagger_mcp.utils", level="WARNING"):
            self.assertEqual(substitute_env_vars("{SURELY_UNSET_VAR_Y}"), "{SURELY_UNSET_VAR_Y}")

    def test_passthrough(self):
        self.assertIsNone(substitute_env_vars(None))
        self.assertEqual(substitute_env_vars("plain"), "plain")
        self.assertEqual(substitute_env_vars(42), 42)


class TestSetupEnvironment(unittest.TestCase):

    @patch("swagger_mcp.utils.configure_logging")
    @patch("dotenv.load_dotenv")
    def test_loads_dotenv(self, mock_load_dotenv, mock_configure_logging):
        setup_environment("debug")
        mock_configure_logging.assert_called_once_with("debug")
        mock_load_dotenv.assert_called_once()


if __name__ == "__main__":
    unittest.main()
