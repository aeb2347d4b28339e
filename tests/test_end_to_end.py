"""End-to-end checks from a configuration file to an executed tool call."""

import json

import anyio
import httpx

from swagger_mcp.config import load_config
from swagger_mcp.manager import build_toolkit
from swagger_mcp.openapi.dispatcher import create_client
from swagger_mcp.openapi.spec import dereference_spec
from swagger_mcp.openapi.tools import FastMCPOpenAPITool, OpenAPIToolkit


def test_config_file_to_tool_call(config_file):
    config = load_config(config_file)
    assert config.server.port == 8123
    assert config.log.level == "debug"

    toolkit = build_toolkit(config)
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": 1, "name": "Rex"}])

    # Route the calls to a mock transport instead of the network
    toolkit.dispatcher.client = create_client(transport=httpx.MockTransport(handler))

    async def call():
        try:
            return await FastMCPOpenAPITool(toolkit.get_tool("findPets")).run({"limit": 1})
        finally:
            await toolkit.dispatcher.client.aclose()
            await toolkit.aclose()

    result = anyio.run(call)

    assert [c.text for c in result.content][-1] == "HTTP Status Code: 200"
    assert json.loads(result.content[0].text) == [{"id": 1, "name": "Rex"}]
    assert str(seen[0].url) == "https://petstore.example.com/v2/pets?limit=1"
    assert seen[0].headers["api_key"] == "special-key"


def test_every_operation_becomes_a_tool(sample_petstore_spec, sample_openapi_spec):
    petstore = OpenAPIToolkit(dereference_spec(sample_petstore_spec))
    items = OpenAPIToolkit(dereference_spec(sample_openapi_spec))

    assert len(petstore.get_tools()) == 5
    assert {tool.to_schema()["name"] for tool in items.get_tools()} == {
        "createItem",
        "get-/items",
        "getItem",
    }
