"""
Remote Element 代理

以 marker id 重新選取遠端元素，將方法呼叫轉為 jQuery 運算式送到頁面執行。
每次呼叫都重新選取，不保留 handle、不快取結果。
"""

import logging
from typing import Any

from live_bridge.config import MARKER_ATTRIBUTE, UTILITY_NAMESPACE
from live_bridge.remote.dispatcher import check_response
from live_bridge.remote.inspector import Inspector
from live_bridge.utils import js_literal, truncate_string

logger = logging.getLogger(__name__)

# Python 方法名稱 -> 遠端 jQuery 方法名稱
REMOTE_ELEMENT_METHODS = {
    "attr": "attr",
    "remove_attr": "removeAttr",
    "before": "before",
    "after": "after",
    "append": "append",
    "prepend": "prepend",
    "text": "text",
    "detach": "detach",
    "remove": "remove",
    "html": "html",
}


def serialize_argument(arg: Any) -> str:
    """
    將參數轉為 JavaScript 片段

    字串直接加上雙引號（不做跳脫），數值與布林直接代入。
    其他型別不支援。

    Raises:
        TypeError: 不支援的參數型別
    """
    if isinstance(arg, str):
        return f'"{arg}"'
    if isinstance(arg, bool):
        return js_literal(arg)
    if isinstance(arg, (int, float)):
        return str(arg)
    raise TypeError(f"Remote element 不支援此參數型別: {type(arg).__name__}")


class RemoteElement:
    """
    遠端元素代理

    例如 RemoteElement(inspector, "42").text("hi") 會在頁面執行
    window._LDjQuery("[data-brackets-id=\\"42\\"]").text("hi")
    """

    def __init__(self, inspector: Inspector, marker_id: str) -> None:
        self._inspector = inspector
        self.marker_id = marker_id
        self._find = f'window.{UTILITY_NAMESPACE}("[{MARKER_ATTRIBUTE}=\\"{marker_id}\\"]").'

    @property
    def methods(self) -> dict[str, Any]:
        """可呼叫的方法表"""
        return {name: getattr(self, name) for name in REMOTE_ELEMENT_METHODS}

    def expression(self, method: str, *args: Any) -> str:
        """組出選取元素並呼叫 method 的運算式"""
        serialized = ",".join(serialize_argument(arg) for arg in args)
        return f"{self._find}{method}({serialized})"

    async def _eval(self, method: str, *args: Any) -> dict[str, Any]:
        expression = self.expression(method, *args)
        logger.debug(f"Remote element: {truncate_string(expression)}")
        response = await self._inspector.evaluate(expression)
        return check_response(response, method)

    # ═══════════════════════════════════════════════════════════════════════════════
    # 屬性
    # ═══════════════════════════════════════════════════════════════════════════════

    async def attr(self, *args: Any) -> dict[str, Any]:
        """取得或設定屬性"""
        return await self._eval("attr", *args)

    async def remove_attr(self, name: str) -> dict[str, Any]:
        """移除屬性"""
        return await self._eval("removeAttr", name)

    # ═══════════════════════════════════════════════════════════════════════════════
    # 結構
    # ═══════════════════════════════════════════════════════════════════════════════

    async def before(self, *args: Any) -> dict[str, Any]:
        return await self._eval("before", *args)

    async def after(self, *args: Any) -> dict[str, Any]:
        return await self._eval("after", *args)

    async def append(self, *args: Any) -> dict[str, Any]:
        return await self._eval("append", *args)

    async def prepend(self, *args: Any) -> dict[str, Any]:
        return await self._eval("prepend", *args)

    async def detach(self) -> dict[str, Any]:
        """從 DOM 分離（保留資料與事件）"""
        return await self._eval("detach")

    async def remove(self) -> dict[str, Any]:
        """從 DOM 移除"""
        return await self._eval("remove")

    # ═══════════════════════════════════════════════════════════════════════════════
    # 內容
    # ═══════════════════════════════════════════════════════════════════════════════

    async def text(self, *args: Any) -> dict[str, Any]:
        """取得或設定文字"""
        return await self._eval("text", *args)

    async def html(self, *args: Any) -> dict[str, Any]:
        """取得或設定 HTML"""
        return await self._eval("html", *args)

    def __repr__(self) -> str:
        return f"<RemoteElement marker_id={self.marker_id!r}>"
