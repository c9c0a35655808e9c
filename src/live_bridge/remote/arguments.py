"""
遠端呼叫參數

將呼叫參數分類為 Literal（傳值）或 NodeRef（傳參考），
並在組成協定參數前解析所有節點參考。
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from live_bridge.schemas import NodeResolutionError, RemoteObject

logger = logging.getLogger(__name__)


class NodeReference(ABC):
    """
    遠端 DOM 節點的本地描述

    resolve() 可以直接回傳值，也可以回傳 awaitable。
    解析結果若帶有 object handle 則以參考傳遞，否則視為一般值。
    """

    node_id: Any

    @abstractmethod
    def resolve(self) -> Any: ...


class DOMNodeReference(NodeReference):
    """以 CDP nodeId 表示的節點，透過 DOM.resolveNode 解析"""

    def __init__(self, inspector: Any, node_id: int) -> None:
        self._inspector = inspector
        self.node_id = node_id

    def resolve(self) -> Any:
        return self._inspector.resolve_node(self.node_id)

    def __repr__(self) -> str:
        return f"<DOMNodeReference node_id={self.node_id}>"


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class NodeRef:
    node: NodeReference


Argument = Literal | NodeRef


@dataclass(frozen=True)
class ResolvedArgument:
    """解析完成的參數；handle 與 value 擇一"""
    handle: str | None = None
    value: Any = None

    def to_protocol(self) -> dict[str, Any]:
        """轉為 Runtime.CallArgument"""
        if self.handle:
            return {"objectId": self.handle}
        return {"value": self.value}


def to_argument(value: Any) -> Argument:
    """在 API 邊界將原始參數分類一次"""
    if isinstance(value, (Literal, NodeRef)):
        return value
    if isinstance(value, NodeReference):
        return NodeRef(value)
    return Literal(value)


def handle_of(value: Any) -> str | None:
    """取得值所帶的 object handle；沒有則回傳 None"""
    if isinstance(value, RemoteObject):
        return value.object_id
    if isinstance(value, Mapping):
        if value.get("objectId"):
            return value["objectId"]
        # DOM.resolveNode 回傳 {"object": RemoteObject}
        nested = value.get("object")
        if isinstance(nested, Mapping) and nested.get("objectId"):
            return nested["objectId"]
    return None


async def _resolve_one(argument: Argument) -> ResolvedArgument:
    if isinstance(argument, NodeRef):
        node = argument.node
        try:
            value = node.resolve()
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            logger.warning(f"節點解析失敗: node_id={getattr(node, 'node_id', None)}, error={e}")
            raise NodeResolutionError(f"無法解析節點: {node!r}", node_id=getattr(node, "node_id", None)) from e
    else:
        value = argument.value

    handle = handle_of(value)
    if handle:
        return ResolvedArgument(handle=handle)
    return ResolvedArgument(value=value)


async def resolve_arguments(arguments: Iterable[Argument]) -> list[ResolvedArgument]:
    """
    解析所有參數

    所有節點參考同時解析，全部完成後才回傳；任一失敗則整體失敗。

    Raises:
        NodeResolutionError: 任一節點解析失敗
    """
    return list(await asyncio.gather(*(_resolve_one(argument) for argument in arguments)))
