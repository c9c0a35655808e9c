"""
資料模型定義

包含 RemoteObject 與 bridge 的錯誤類型
"""
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RemoteObject:
    """CDP Runtime.RemoteObject 的精簡表示"""
    object_id: str | None = None
    type: str = ""
    subtype: str = ""
    class_name: str = ""
    description: str = ""
    value: Any = None

    @classmethod
    def from_protocol(cls, data: dict[str, Any] | None) -> "RemoteObject":
        """從協定回應的 result 欄位建立"""
        data = data or {}
        return cls(
            object_id=data.get("objectId"),
            type=data.get("type", ""),
            subtype=data.get("subtype", ""),
            class_name=data.get("className", ""),
            description=data.get("description", ""),
            value=data.get("value"),
        )


class BridgeError(Exception):
    """bridge 專用的錯誤類型，payload 保留遠端原始錯誤內容"""
    def __init__(self, message: str, payload: Any = None):
        self.message = message
        self.payload = payload
        super().__init__(message)


class InjectionError(BridgeError):
    """注入 RemoteFunctions 失敗，load() 因此被拒絕"""


class RemoteCallError(BridgeError):
    """單一遠端呼叫失敗"""


class ProtocolError(RemoteCallError):
    """協定層回傳 error"""
    def __init__(self, message: str, payload: Any = None, method: str = ""):
        self.method = method
        super().__init__(message, payload)


class RemoteExceptionError(RemoteCallError):
    """遠端腳本拋出例外（wasThrown / exceptionDetails）"""


class NodeResolutionError(BridgeError):
    """節點參考無法解析為 object handle"""
    def __init__(self, message: str, node_id: Any = None):
        self.node_id = node_id
        super().__init__(message)


class TransportClosedError(BridgeError):
    """連線在請求完成前關閉"""
