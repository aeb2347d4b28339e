#!/usr/bin/env python3
"""smoke_mcp.py
End-to-end smoke test for a running Swagger MCP server.

The script:
  1. Opens the SSE stream (`<base>/sse`) and waits for the `endpoint` event
     that carries the session's `/messages/?session_id=...` URL.
  2. Runs the MCP `initialize` handshake.
  3. Sends `tools/list` and prints every tool name with its summary line.
  4. Optionally calls one tool (`--call NAME --args JSON`) and prints the
     text segments it returns.

Usage
-----
Start the server:
    swagger-mcp serve --port 3000

In another shell:
    python scripts/smoke_mcp.py http://localhost:3000
    python scripts/smoke_mcp.py http://localhost:3000 --call getPetById --args '{"petId": 1}'
"""

import argparse
import json
import queue
import sys
import threading
from typing import Any, Dict, Optional

import requests


class SseReader(threading.Thread):
    """Reads an SSE stream in the background and queues complete events."""

    def __init__(self, url: str, events: "queue.Queue", timeout: int = 60):
        super().__init__(daemon=True, name="sse-reader")
        self.url = url
        self.events = events
        self.timeout = timeout
        self._stopped = threading.Event()

    def run(self):
        try:
            with requests.get(self.url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                lines = []
                for raw in resp.iter_lines(decode_unicode=True):
                    if self._stopped.is_set():
                        break
                    if raw is None:
                        continue
                    line = raw.rstrip("\r\n")
                    if line:
                        lines.append(line)
                    elif lines:
                        self.events.put(parse_event(lines))
                        lines = []
        except requests.RequestException as exc:
            self.events.put({"event": "error", "data": str(exc)})
        finally:
            self.events.put(None)

    def stop(self):
        self._stopped.set()


def parse_event(lines) -> Dict[str, str]:
    """Fold `field: value` lines of one SSE event into a dict."""
    event = {"event": "message", "data": ""}
    data = []
    for line in lines:
        field, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if field == "data":
            data.append(value)
        elif field == "event":
            event["event"] = value
    event["data"] = "\n".join(data)
    return event


class McpSseSession:
    """Minimal JSON-RPC session over the MCP SSE transport."""

    def __init__(self, base_url: str, wait: float = 15):
        self.base_url = base_url.rstrip("/")
        self.wait = wait
        self.events: "queue.Queue" = queue.Queue()
        self.reader = SseReader(f"{self.base_url}/sse", self.events)
        self.messages_url: Optional[str] = None
        self._next_id = 1

    def __enter__(self):
        self.reader.start()
        endpoint = self._next_event("endpoint")["data"].strip()
        self.messages_url = f"{self.base_url}{endpoint}"
        return self

    def __exit__(self, *exc_info):
        self.reader.stop()
        self.reader.join(timeout=2)

    def _next_event(self, kind: str) -> Dict[str, str]:
        while True:
            event = self.events.get(timeout=self.wait)
            if event is None:
                raise RuntimeError("SSE stream closed")
            if event["event"] == "error":
                raise RuntimeError(event["data"])
            if event["event"] == kind:
                return event

    def _post(self, payload: Dict[str, Any]):
        resp = requests.post(self.messages_url, json=payload, timeout=30)
        if resp.status_code != 202:
            raise RuntimeError(f"Unexpected HTTP status {resp.status_code}: {resp.text}")

    def notify(self, method: str, params: Optional[Dict[str, Any]] = None):
        payload = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            payload["params"] = params
        self._post(payload)

    def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a request and wait for the response with the same id."""
        request_id = self._next_id
        self._next_id += 1
        payload = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            payload["params"] = params
        self._post(payload)

        while True:
            try:
                message = json.loads(self._next_event("message")["data"])
            except json.JSONDecodeError:
                continue
            if message.get("id") != request_id:
                continue
            if "error" in message:
                raise RuntimeError(f"{method} failed: {message['error']}")
            return message.get("result")

    def initialize(self) -> Dict[str, Any]:
        result = self.request(
            "initialize",
            {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": "swagger-mcp-smoke", "version": "0.1"},
            },
        )
        self.notify("notifications/initialized")
        return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Swagger MCP smoke test")
    parser.add_argument("base", help="Server base URL (e.g. http://localhost:3000)")
    parser.add_argument("--call", help="Name of a tool to call")
    parser.add_argument("--args", default="{}", help="JSON arguments for --call")
    args = parser.parse_args(argv)

    with McpSseSession(args.base) as session:
        print(f"[+] Connected, messages go to {session.messages_url}")

        server_info = session.initialize().get("serverInfo", {})
        print(f"[+] Initialized: {server_info.get('name')} {server_info.get('version')}")

        tools = session.request("tools/list").get("tools", [])
        print(f"[+] {len(tools)} tools")
        for tool in tools:
            summary = (tool.get("description") or "").splitlines()
            print(f"    {tool['name']}: {summary[0] if summary else ''}")

        if args.call:
            result = session.request(
                "tools/call", {"name": args.call, "arguments": json.loads(args.args)}
            )
            print(f"\n[+] {args.call} (isError={result.get('isError', False)})")
            for item in result.get("content", []):
                print(item.get("text", item))


if __name__ == "__main__":
    try:
        main()
    except (RuntimeError, queue.Empty) as exc:
        print(f"[x] {str(exc) or 'timed out waiting for the server'}", file=sys.stderr)
        sys.exit(1)
