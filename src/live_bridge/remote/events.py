"""
本地事件

EventEmitter 提供 on / off / emit；
AttributeEventRelay 將符合前綴的 DOM.attributeModified 轉為本地事件。
"""

import logging
from collections.abc import Callable
from typing import Any

from live_bridge.config import EVENT_ATTRIBUTE_PREFIX

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], Any]


class EventEmitter:
    """簡單的同步事件分派，沒有訂閱者的事件直接丟棄"""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str | None = None, listener: Listener | None = None) -> None:
        """移除訂閱；未指定 event 時清除全部"""
        if event is None:
            self._listeners.clear()
            return

        if listener is None:
            self._listeners.pop(event, None)
            return

        remaining = [fn for fn in self._listeners.get(event, []) if fn != listener]
        if remaining:
            self._listeners[event] = remaining
        else:
            self._listeners.pop(event, None)

    def emit(self, event: str, payload: dict[str, Any]) -> int:
        """
        觸發事件

        Returns:
            被呼叫的訂閱者數量
        """
        listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception(f"事件訂閱者執行失敗: {event}")
        return len(listeners)


class AttributeEventRelay:
    """DOM.attributeModified -> 本地事件"""

    def __init__(self, emitter: EventEmitter, prefix: str = EVENT_ATTRIBUTE_PREFIX) -> None:
        self._emitter = emitter
        self._prefix = prefix

    def __call__(self, params: dict[str, Any]) -> None:
        # params = {nodeId, name, value}
        name = params.get("name") or ""
        if not name.startswith(self._prefix) or len(name) == len(self._prefix):
            return

        event = name[len(self._prefix):]
        delivered = self._emitter.emit(event, params)
        logger.debug(f"遠端事件: {event} (訂閱者 {delivered})")
