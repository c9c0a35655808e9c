"""
Pytest configuration and fixtures.

FakeInspector 模擬 CDP transport：記錄 evaluate / callFunctionOn，
回傳預先設定的回應，並可手動觸發頁面事件。
"""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

REMOTE_FUNCTIONS = "function RemoteFunctions(experimental) { return {keepAlive: function () {}}; }"
UTILITY_SOURCE = "/* jQuery */var jQuery = function () {};"


class FakeInspector:
    """符合 Inspector 介面的假 transport"""

    def __init__(self) -> None:
        self.evaluated: list[str] = []
        self.calls: list[tuple[str, str, list[dict[str, Any]]]] = []
        self.handlers: dict[str, list[tuple[Callable, str | None]]] = {}
        self.resolved_nodes: list[int] = []
        self.evaluate_responder: Callable[[str], Any] = self.default_evaluate_response
        self.call_responder: Callable[[str, str, list], Any] = lambda *_: {"result": {"type": "undefined"}}

    @staticmethod
    def default_evaluate_response(expression: str) -> dict[str, Any]:
        if expression.startswith("window._LD="):
            return {"result": {"type": "object", "objectId": "ld-handle"}}
        if "window._LDjQuery=jQuery.noConflict(true);" in expression:
            return {"result": {"type": "function", "objectId": "jq-handle"}}
        return {"result": {"type": "undefined"}}

    async def evaluate(self, expression: str, *, callback: Callable | None = None) -> dict[str, Any]:
        self.evaluated.append(expression)
        response = self.evaluate_responder(expression)
        if isinstance(response, BaseException):
            raise response
        if callback is not None:
            callback({"id": len(self.evaluated), "result": response})
        return response

    async def call_function_on(
        self,
        object_id: str,
        function_declaration: str,
        arguments: list[dict[str, Any]],
        *,
        callback: Callable | None = None,
    ) -> dict[str, Any]:
        self.calls.append((object_id, function_declaration, arguments))
        response = self.call_responder(object_id, function_declaration, arguments)
        if isinstance(response, BaseException):
            raise response
        if callback is not None:
            callback({"id": len(self.calls), "result": response})
        return response

    async def resolve_node(self, node_id: int) -> dict[str, Any]:
        self.resolved_nodes.append(node_id)
        return {"object": {"type": "object", "subtype": "node", "objectId": f"node-{node_id}"}}

    def on(self, event: str, handler: Callable, namespace: str | None = None) -> None:
        self.handlers.setdefault(event, []).append((handler, namespace))

    def off(self, event: str | None = None, namespace: str | None = None) -> None:
        events = [event] if event is not None else list(self.handlers)
        for name in events:
            self.handlers[name] = [
                (handler, ns) for handler, ns in self.handlers.get(name, []) if namespace is not None and ns != namespace
            ]

    def handler_count(self, event: str) -> int:
        return len(self.handlers.get(event, []))

    def fire(self, event: str, params: dict[str, Any] | None = None) -> None:
        for handler, _namespace in list(self.handlers.get(event, [])):
            handler(params or {})

    def method_calls(self, method: str) -> list[tuple[str, str, list[dict[str, Any]]]]:
        return [call for call in self.calls if call[1] == method]


async def settle(rounds: int = 10) -> None:
    """讓排程中的 task 執行完"""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def inspector() -> FakeInspector:
    return FakeInspector()
