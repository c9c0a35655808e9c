"""
Inspector 連線

透過 Chrome DevTools Protocol (CDP) WebSocket 連接頁面 target。
負責發送指令、配對回應、分派頁面事件。
"""

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol

import httpx
import websockets

from live_bridge.config import CDP_ENDPOINT, COMMAND_TIMEOUT
from live_bridge.schemas import ProtocolError, TransportClosedError
from live_bridge.utils import truncate_string

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], Any]
ResponseCallback = Callable[[dict[str, Any]], Any]


class Inspector(Protocol):
    """RemoteAgent 所需的最小 transport 介面"""

    async def evaluate(self, expression: str, *, callback: ResponseCallback | None = None) -> dict[str, Any]: ...

    async def call_function_on(
        self,
        object_id: str,
        function_declaration: str,
        arguments: list[dict[str, Any]],
        *,
        callback: ResponseCallback | None = None,
    ) -> dict[str, Any]: ...

    def on(self, event: str, handler: EventHandler, namespace: str | None = None) -> None: ...

    def off(self, event: str | None = None, namespace: str | None = None) -> None: ...


async def get_page_ws_url(endpoint: str = CDP_ENDPOINT) -> str:
    """
    取得第一個 page target 的 WebSocket URL

    Args:
        endpoint: CDP HTTP Endpoint，例如 http://127.0.0.1:9222

    Returns:
        webSocketDebuggerUrl

    Raises:
        RuntimeError: 找不到 page target
    """
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{endpoint.rstrip('/')}/json")
        response.raise_for_status()
        targets = response.json()

    for target in targets:
        if target.get("type") == "page" and target.get("webSocketDebuggerUrl"):
            logger.debug(f"找到 page target: {target.get('url', '')}")
            return target["webSocketDebuggerUrl"]

    raise RuntimeError(f"在 {endpoint} 找不到可連接的 page target")


class InspectorConnection:
    """
    CDP 連線

    以 request id 配對回應，事件依 CDP method 名稱分派給已註冊的 handler。
    handler 可指定 namespace，方便一次移除同一元件註冊的所有 handler。
    """

    def __init__(self, endpoint: str = CDP_ENDPOINT, command_timeout: float = COMMAND_TIMEOUT) -> None:
        self._endpoint = endpoint
        self._command_timeout = command_timeout
        self._websocket: Any = None
        self._listener: asyncio.Task | None = None
        self._next_id = 0
        self._pending_requests: dict[int, asyncio.Future] = {}
        self._callbacks: dict[int, ResponseCallback] = {}
        self._handlers: dict[str, list[tuple[EventHandler, str | None]]] = {}

    @property
    def is_connected(self) -> bool:
        """檢查是否有連線"""
        return self._websocket is not None and self._listener is not None and not self._listener.done()

    async def connect(self, ws_url: str | None = None) -> None:
        """
        連接頁面 target

        Args:
            ws_url: 直接指定 WebSocket URL，未指定時透過 /json 自動尋找
        """
        if self.is_connected:
            logger.warning("Inspector 已連線")
            return

        if ws_url is None:
            ws_url = await get_page_ws_url(self._endpoint)

        self._websocket = await websockets.connect(ws_url, max_size=None)
        self._listener = asyncio.get_running_loop().create_task(self._listen())
        logger.info(f"✅ 已連接到頁面: {ws_url}")

    async def close(self) -> None:
        """關閉連線"""
        if self._websocket is not None:
            await self._websocket.close()
        if self._listener is not None:
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
        self._websocket = None
        self._listener = None
        logger.info("🛑 Inspector 連線已關閉")

    async def _listen(self) -> None:
        """接收訊息迴圈"""
        try:
            async for message in self._websocket:
                self._handle_message(message)
        except websockets.ConnectionClosed:
            logger.warning("🔴 Inspector 連線已斷開")
        finally:
            self._fail_pending(TransportClosedError("Inspector 連線已關閉"))

    def _fail_pending(self, error: Exception) -> None:
        for future in self._pending_requests.values():
            if not future.done():
                future.set_exception(error)
        self._pending_requests.clear()
        self._callbacks.clear()

    def _handle_message(self, message: str | bytes) -> None:
        """處理來自頁面的訊息"""
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning(f"無法解析訊息: {truncate_string(str(message))}")
            return

        if "id" in data:
            self._handle_response(data)
        elif "method" in data:
            self.dispatch_event(data["method"], data.get("params", {}))
        else:
            logger.warning(f"未知訊息類型: {truncate_string(str(data))}")

    def _handle_response(self, data: dict[str, Any]) -> None:
        request_id = data["id"]

        callback = self._callbacks.pop(request_id, None)
        if callback is not None:
            try:
                callback(data)
            except Exception:
                logger.exception(f"回應 callback 執行失敗: request_id={request_id}")

        future = self._pending_requests.pop(request_id, None)
        if future is None or future.done():
            return

        if "error" in data:
            error = data["error"]
            future.set_exception(ProtocolError(f"CDP 錯誤: {error.get('message', '未知錯誤')}", payload=error))
        else:
            future.set_result(data.get("result", {}))

    def dispatch_event(self, event: str, params: dict[str, Any]) -> int:
        """
        分派事件給已註冊的 handler

        Returns:
            被呼叫的 handler 數量
        """
        handlers = list(self._handlers.get(event, ()))
        for handler, _namespace in handlers:
            try:
                handler(params)
            except Exception:
                logger.exception(f"事件處理失敗: {event}")
        return len(handlers)

    def on(self, event: str, handler: EventHandler, namespace: str | None = None) -> None:
        """註冊 CDP 事件 handler，例如 Page.loadEventFired"""
        self._handlers.setdefault(event, []).append((handler, namespace))

    def off(self, event: str | None = None, namespace: str | None = None) -> None:
        """移除 handler；可依事件名稱、namespace 或兩者篩選"""
        events = [event] if event is not None else list(self._handlers)
        for name in events:
            remaining = [
                (handler, ns) for handler, ns in self._handlers.get(name, []) if namespace is not None and ns != namespace
            ]
            if remaining:
                self._handlers[name] = remaining
            else:
                self._handlers.pop(name, None)

    async def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        callback: ResponseCallback | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        發送 CDP 指令

        Args:
            method: CDP method，例如 Runtime.evaluate
            params: 指令參數
            callback: 收到回應時以原始訊息呼叫，與回傳值無關
            timeout: 逾時時間（秒），預設為 COMMAND_TIMEOUT

        Returns:
            回應中的 result 欄位

        Raises:
            RuntimeError: 尚未連線
            ProtocolError: 協定層錯誤
            asyncio.TimeoutError: 指令逾時
        """
        if not self.is_connected:
            raise RuntimeError("Inspector 尚未連線")

        self._next_id += 1
        request_id = self._next_id
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = future
        if callback is not None:
            self._callbacks[request_id] = callback

        try:
            await self._websocket.send(json.dumps({"id": request_id, "method": method, "params": params or {}}))
            logger.debug(f"發送指令: method={method}, request_id={request_id}")
            return await asyncio.wait_for(future, timeout=timeout or self._command_timeout)
        except asyncio.TimeoutError:
            logger.error(f"指令逾時: method={method}, request_id={request_id}")
            raise
        finally:
            self._pending_requests.pop(request_id, None)
            self._callbacks.pop(request_id, None)

    # ═══════════════════════════════════════════════════════════════════════════════
    # Runtime / DOM / Page 指令
    # ═══════════════════════════════════════════════════════════════════════════════

    async def evaluate(self, expression: str, *, callback: ResponseCallback | None = None) -> dict[str, Any]:
        """在頁面執行 JavaScript 運算式"""
        return await self.send("Runtime.evaluate", {"expression": expression}, callback=callback)

    async def call_function_on(
        self,
        object_id: str,
        function_declaration: str,
        arguments: list[dict[str, Any]],
        *,
        callback: ResponseCallback | None = None,
    ) -> dict[str, Any]:
        """以 object_id 為 this 呼叫遠端函式"""
        return await self.send(
            "Runtime.callFunctionOn",
            {
                "objectId": object_id,
                "functionDeclaration": function_declaration,
                "arguments": arguments,
            },
            callback=callback,
        )

    async def resolve_node(self, node_id: int) -> dict[str, Any]:
        """將 DOM nodeId 解析為 RemoteObject，回傳 {"object": {...}}"""
        return await self.send("DOM.resolveNode", {"nodeId": node_id})

    async def enable_domains(self) -> None:
        """啟用 bridge 需要的 CDP domain；DOM 事件需先取得 document"""
        for method in ("Page.enable", "Runtime.enable", "DOM.enable"):
            await self.send(method)
        await self.send("DOM.getDocument", {"depth": -1})

    async def reload(self) -> None:
        """重新載入頁面"""
        await self.send("Page.reload", {"ignoreCache": False})
