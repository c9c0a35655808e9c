"""
遠端頁面 bridge 模組

透過 CDP 注入 RemoteFunctions，
並以 RemoteAgent 介面呼叫頁面內的函式、接收頁面事件。
"""

from live_bridge.remote.agent import RemoteAgent
from live_bridge.remote.arguments import DOMNodeReference, NodeReference
from live_bridge.remote.element_proxy import RemoteElement
from live_bridge.remote.inspector import InspectorConnection

__all__ = ["RemoteAgent", "RemoteElement", "InspectorConnection", "NodeReference", "DOMNodeReference"]
