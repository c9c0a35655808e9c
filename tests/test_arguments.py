"""Tests for call argument classification and node resolution."""

import asyncio

import pytest

from live_bridge.remote.arguments import (
    DOMNodeReference,
    Literal,
    NodeRef,
    NodeReference,
    ResolvedArgument,
    resolve_arguments,
    to_argument,
)
from live_bridge.schemas import NodeResolutionError, RemoteObject


class StaticNode(NodeReference):
    """同步回傳固定值的節點"""

    def __init__(self, node_id, value):
        self.node_id = node_id
        self._value = value

    def resolve(self):
        return self._value


class DelayedNode(NodeReference):
    """延遲後回傳 objectId 的節點"""

    def __init__(self, node_id, delay, order):
        self.node_id = node_id
        self._delay = delay
        self._order = order

    async def resolve(self):
        await asyncio.sleep(self._delay)
        self._order.append(self.node_id)
        return {"objectId": f"obj-{self.node_id}"}


class FailingNode(NodeReference):
    node_id = 7

    async def resolve(self):
        raise RuntimeError("node is gone")


class TestToArgument:
    """Raw values are classified once into Literal or NodeRef."""

    def test_plain_values_are_literals(self):
        assert to_argument("x") == Literal("x")
        assert to_argument(3) == Literal(3)
        assert to_argument(None) == Literal(None)

    def test_node_reference_becomes_node_ref(self):
        node = StaticNode(1, {"objectId": "a"})

        assert to_argument(node) == NodeRef(node)

    def test_tagged_values_pass_through(self):
        literal = Literal({"nodeId": 3})

        assert to_argument(literal) is literal


class TestResolvedArgument:
    """Resolved arguments map to CDP CallArgument dicts."""

    def test_handle_is_sent_by_reference(self):
        assert ResolvedArgument(handle="obj-1").to_protocol() == {"objectId": "obj-1"}

    def test_value_is_sent_by_value(self):
        assert ResolvedArgument(value=[1, 2]).to_protocol() == {"value": [1, 2]}

    def test_falsy_value_is_still_a_value(self):
        assert ResolvedArgument(value=0).to_protocol() == {"value": 0}


class TestResolveArguments:
    """Node references resolve before parameters are built."""

    @pytest.mark.asyncio
    async def test_literals_resolve_by_value(self):
        resolved = await resolve_arguments([Literal("a"), Literal(2), Literal(False)])

        assert [arg.to_protocol() for arg in resolved] == [{"value": "a"}, {"value": 2}, {"value": False}]

    @pytest.mark.asyncio
    async def test_remote_object_literal_goes_by_handle(self):
        resolved = await resolve_arguments([Literal(RemoteObject(object_id="r-1"))])

        assert resolved[0].handle == "r-1"

    @pytest.mark.asyncio
    async def test_synchronous_resolution(self):
        node = StaticNode(1, {"object": {"objectId": "n-1"}})

        resolved = await resolve_arguments([NodeRef(node)])

        assert resolved[0].to_protocol() == {"objectId": "n-1"}

    @pytest.mark.asyncio
    async def test_resolution_without_handle_is_a_value(self):
        resolved = await resolve_arguments([NodeRef(StaticNode(1, "plain"))])

        assert resolved[0].to_protocol() == {"value": "plain"}

    @pytest.mark.asyncio
    async def test_waits_for_all_and_keeps_argument_order(self):
        order = []
        slow = DelayedNode(1, 0.02, order)
        fast = DelayedNode(2, 0.0, order)

        resolved = await resolve_arguments([NodeRef(slow), Literal("mid"), NodeRef(fast)])

        assert order == [2, 1]
        assert [arg.to_protocol() for arg in resolved] == [
            {"objectId": "obj-1"},
            {"value": "mid"},
            {"objectId": "obj-2"},
        ]

    @pytest.mark.asyncio
    async def test_single_failure_fails_the_whole_set(self):
        with pytest.raises(NodeResolutionError) as exc_info:
            await resolve_arguments([Literal(1), NodeRef(FailingNode())])

        assert exc_info.value.node_id == 7
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestDOMNodeReference:
    """DOMNodeReference resolves through DOM.resolveNode."""

    @pytest.mark.asyncio
    async def test_resolves_via_inspector(self, inspector):
        node = DOMNodeReference(inspector, 12)

        resolved = await resolve_arguments([to_argument(node)])

        assert inspector.resolved_nodes == [12]
        assert resolved[0].handle == "node-12"
