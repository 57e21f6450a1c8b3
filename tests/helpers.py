"""Shared test data and fakes for airframe_mcp tests."""

import json

import httpx

VALID_API_KEY = "af_test_key_123"
DEFAULT_SERVER_URL = "https://mcp.airframe.ai/mcp"

TOOLS_LIST_RESPONSE = {
    "jsonrpc": "2.0",
    "id": 1,
    "result": {
        "tools": [
            {
                "name": "search_products",
                "description": "Search for software products",
                "inputSchema": {
                    "type": "object",
                    "properties": {"query": {"type": "string", "description": "Search query"}},
                    "required": ["query"],
                },
            },
            {
                "name": "get_product_details",
                "description": "Get product details by slug",
                "inputSchema": {
                    "type": "object",
                    "properties": {"slug": {"type": "string", "description": "Product slug"}},
                    "required": ["slug"],
                },
            },
        ]
    },
}


def json_response(body, status_code=200) -> httpx.Response:
    """Response with a single JSON document."""
    return httpx.Response(status_code, json=body)


def sse_response(lines: list[str]) -> httpx.Response:
    """Response with a text/event-stream body, one entry per line."""
    content = "".join(line + "\n" for line in lines).encode()
    return httpx.Response(
        200, headers={"content-type": "text/event-stream"}, content=content
    )


def sse_data(obj) -> str:
    return f"data: {json.dumps(obj)}"


def sse_progress(token, progress, total=None) -> str:
    params = {"progressToken": token, "progress": progress}
    if total is not None:
        params["total"] = total
    return sse_data({"jsonrpc": "2.0", "method": "notifications/progress", "params": params})


def sse_result(request_id, result) -> str:
    return sse_data({"jsonrpc": "2.0", "id": request_id, "result": result})


def text_result(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


class RecordingSink:
    """NotificationSink that records every progress event it receives."""

    def __init__(self, fail: bool = False):
        self.events = []
        self.fail = fail

    async def send_progress(self, event) -> None:
        if self.fail:
            raise RuntimeError("transport closed")
        self.events.append(event)


class RemoteServer:
    """Scripted stand-in for the remote HTTP MCP server.

    Responses are served in order; a callable response is called with the
    request so it can echo the request id.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def bodies(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(json.loads(request.content))
            if hasattr(response, "__await__"):
                response = await response
        return response
