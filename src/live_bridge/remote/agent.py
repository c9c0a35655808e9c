"""
Remote Agent

注入 RemoteFunctions 與 jQuery 到頁面，維持注入後的 handle，
提供 call() / jquery() 遠端呼叫、remote_element() 元素代理，
並將 data-ld-* 屬性變更轉為本地事件。
"""

import asyncio
import logging
from typing import Any

from live_bridge.config import COMMAND_NAMESPACE, EXPERIMENTAL, KEEPALIVE_INTERVAL, UTILITY_NAMESPACE
from live_bridge.remote.context import BridgeState, Heartbeat, RemoteContext
from live_bridge.remote.dispatcher import check_response, dispatch
from live_bridge.remote.element_proxy import RemoteElement
from live_bridge.remote.events import AttributeEventRelay, EventEmitter, Listener
from live_bridge.remote.inspector import Inspector, ResponseCallback
from live_bridge.schemas import BridgeError, InjectionError, RemoteObject
from live_bridge.utils import js_literal

logger = logging.getLogger(__name__)


class RemoteAgent:
    """
    頁面內遠端函式的呼叫介面

    生命週期：UNLOADED -> load() -> LOADING -> (loadEventFired) -> READY，
    頁面開始導航時回到 LOADING，直到下一次 loadEventFired。
    """

    EVENT_NAMESPACE = "RemoteAgent"

    def __init__(
        self,
        inspector: Inspector,
        remote_functions: str,
        utility_source: str,
        *,
        experimental: bool = EXPERIMENTAL,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
    ) -> None:
        self._inspector = inspector
        self._remote_functions = remote_functions
        self._utility_source = utility_source
        self._experimental = experimental

        self._context = RemoteContext()
        self._events = EventEmitter()
        self._relay = AttributeEventRelay(self._events)
        self._heartbeat = Heartbeat(self._context, self._keep_alive, interval=keepalive_interval)
        self._load_future: asyncio.Future | None = None
        self._injections: set[asyncio.Task] = set()

    @property
    def context(self) -> RemoteContext:
        return self._context

    @property
    def events(self) -> EventEmitter:
        return self._events

    @property
    def heartbeat(self) -> Heartbeat:
        return self._heartbeat

    def on(self, event: str, listener: Listener) -> None:
        """訂閱遠端事件，例如 data-ld-highlight 對應 "highlight" """
        self._events.on(event, listener)

    def off(self, event: str | None = None, listener: Listener | None = None) -> None:
        self._events.off(event, listener)

    # ═══════════════════════════════════════════════════════════════════════════════
    # 生命週期
    # ═══════════════════════════════════════════════════════════════════════════════

    def load(self) -> asyncio.Future:
        """
        初始化 agent

        Returns:
            RemoteFunctions 注入完成時結束的 future；
            注入失敗時以 InjectionError 拒絕
        """
        if self._load_future is not None and not self._load_future.done():
            return self._load_future

        self._load_future = asyncio.get_running_loop().create_future()
        self._context.state = BridgeState.LOADING

        self._inspector.off(namespace=self.EVENT_NAMESPACE)
        self._inspector.on("Page.loadEventFired", self._on_load_event_fired, namespace=self.EVENT_NAMESPACE)
        self._inspector.on(
            "Page.frameStartedLoading", self._on_frame_started_loading, namespace=self.EVENT_NAMESPACE
        )
        self._inspector.on("DOM.attributeModified", self._relay, namespace=self.EVENT_NAMESPACE)

        logger.info("🔌 RemoteAgent 已載入，等待頁面 load 事件")
        return self._load_future

    def unload(self) -> None:
        """清除訂閱並停止心跳"""
        self._inspector.off(namespace=self.EVENT_NAMESPACE)
        self._heartbeat.stop()
        self._cancel_injections()

        if self._load_future is not None and not self._load_future.done():
            self._load_future.cancel()

        self._context.reset()
        logger.info("🛑 RemoteAgent 已卸載")

    def _on_load_event_fired(self, params: dict[str, Any]) -> None:
        # params = {timestamp}
        loop = asyncio.get_running_loop()
        for coro in (self._inject_remote_functions(), self._inject_utility_library()):
            task = loop.create_task(coro)
            self._injections.add(task)
            task.add_done_callback(self._injections.discard)

    def _on_frame_started_loading(self, params: dict[str, Any]) -> None:
        self._heartbeat.stop()
        self._cancel_injections()
        self._context.invalidate()
        logger.debug(f"頁面開始載入，遠端 handle 已失效: frameId={params.get('frameId', '')}")

    def _cancel_injections(self) -> None:
        """進行中的注入屬於舊頁面，結果不可寫回 context"""
        for task in self._injections:
            task.cancel()
        self._injections.clear()

    async def _inject_remote_functions(self) -> None:
        command = f"window.{COMMAND_NAMESPACE}={self._remote_functions}({js_literal(self._experimental)});"

        try:
            response = check_response(await self._inspector.evaluate(command), "RemoteFunctions")
            object_id = RemoteObject.from_protocol(response.get("result")).object_id
            if not object_id:
                raise InjectionError("RemoteFunctions 未回傳物件", payload=response.get("result"))
        except Exception as e:
            logger.error(f"❌ 注入 RemoteFunctions 失敗: {e}")
            self._reject_load(e)
            return

        if self._context.state is BridgeState.UNLOADED:
            return

        self._context.command_handle = object_id
        self._context.state = BridgeState.READY
        if self._load_future is not None and not self._load_future.done():
            self._load_future.set_result(None)

        self._heartbeat.start()
        logger.info("✅ RemoteFunctions 注入完成")

    def _reject_load(self, cause: Exception) -> None:
        if self._load_future is None or self._load_future.done():
            return

        if isinstance(cause, InjectionError):
            self._load_future.set_exception(cause)
            return

        if isinstance(cause, BridgeError):
            error = InjectionError(cause.message, payload=cause.payload)
        else:
            error = InjectionError(f"注入 RemoteFunctions 失敗: {cause!r}")
        error.__cause__ = cause
        self._load_future.set_exception(error)

    async def _inject_utility_library(self) -> None:
        command = f"{self._utility_source}window.{UTILITY_NAMESPACE}=jQuery.noConflict(true);"

        try:
            response = check_response(await self._inspector.evaluate(command), "jQuery")
        except Exception as e:
            logger.warning(f"⚠️ 注入 jQuery 失敗: {e}")
            return

        if self._context.state is BridgeState.UNLOADED:
            return

        self._context.utility_handle = RemoteObject.from_protocol(response.get("result")).object_id
        logger.debug("jQuery 注入完成")

    async def _keep_alive(self) -> dict[str, Any]:
        return await self.call("keepAlive")

    # ═══════════════════════════════════════════════════════════════════════════════
    # 遠端呼叫
    # ═══════════════════════════════════════════════════════════════════════════════

    async def call(self, method: str, *args: Any, callback: ResponseCallback | None = None) -> dict[str, Any]:
        """
        呼叫 RemoteFunctions 中的方法

        NodeReference 參數會先解析並以 objectId 傳遞。

        Args:
            method: 方法名稱（不含 _LD. 前綴）
            args: 呼叫參數
            callback: 協定層完成 callback

        Returns:
            協定回應（含 result 欄位）
        """
        return await dispatch(
            self._inspector,
            self._context.command_handle,
            f"{COMMAND_NAMESPACE}.{method}",
            args,
            callback=callback,
        )

    async def jquery(self, method: str, *args: Any, callback: ResponseCallback | None = None) -> dict[str, Any]:
        """呼叫頁面內 jQuery（_LDjQuery）的方法"""
        return await dispatch(
            self._inspector,
            self._context.utility_handle,
            f"{UTILITY_NAMESPACE}.{method}",
            args,
            callback=callback,
        )

    def remote_element(self, marker_id: str) -> RemoteElement:
        """取得以 data-brackets-id 選取的遠端元素代理"""
        return RemoteElement(self._inspector, marker_id)
