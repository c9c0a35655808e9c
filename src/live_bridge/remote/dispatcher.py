"""
遠端呼叫分派

對指定的 object handle 呼叫遠端方法，並統一處理協定回應。
"""

import logging
from collections.abc import Iterable
from typing import Any

from live_bridge.remote.arguments import resolve_arguments, to_argument
from live_bridge.remote.inspector import Inspector, ResponseCallback
from live_bridge.schemas import ProtocolError, RemoteExceptionError

logger = logging.getLogger(__name__)


def check_response(response: dict[str, Any], method: str = "") -> dict[str, Any]:
    """
    檢查協定回應

    Returns:
        原本的回應（含 result 欄位）

    Raises:
        ProtocolError: 回應帶有 error
        RemoteExceptionError: 遠端腳本拋出例外
    """
    if response.get("error"):
        raise ProtocolError(f"遠端呼叫失敗: {method}", payload=response["error"], method=method)

    if response.get("wasThrown") or response.get("exceptionDetails"):
        details = response.get("exceptionDetails") or response.get("result")
        raise RemoteExceptionError(f"遠端拋出例外: {method}", payload=details)

    return response


async def dispatch(
    inspector: Inspector,
    target_handle: str | None,
    method: str,
    args: Iterable[Any] = (),
    *,
    callback: ResponseCallback | None = None,
) -> dict[str, Any]:
    """
    在 target_handle 上呼叫遠端方法

    Args:
        inspector: transport
        target_handle: 遠端物件的 objectId，必須已設定
        method: 完整方法名稱，例如 _LD.keepAlive
        args: 呼叫參數；NodeReference 會先解析為 objectId
        callback: 協定層完成 callback，收到原始回應

    Returns:
        協定回應（含 result 欄位）

    Raises:
        AssertionError: target_handle 未設定
        NodeResolutionError: 參數解析失敗，此時不會發出呼叫
        RemoteCallError: 遠端呼叫失敗
    """
    if not target_handle:
        raise AssertionError("Attempted to call remote method without objectId set.")

    resolved = await resolve_arguments([to_argument(arg) for arg in args])
    params = [argument.to_protocol() for argument in resolved]

    logger.debug(f"呼叫遠端方法: {method}, 參數數量={len(params)}")
    response = await inspector.call_function_on(target_handle, method, params, callback=callback)
    return check_response(response, method)
