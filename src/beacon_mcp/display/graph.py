"""Minimal synchronous display graph.

Nodes hold an ordered, keyed set of inbound producer nodes and recompute
their ``output`` from the producers' outputs whenever asked to re-render.
A re-render propagates to every consumer. Destroying a node detaches it from
both sides of the graph, re-renders its former consumers and runs the
node's destroy hooks exactly once.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Hashable, Iterable, Mapping

logger = logging.getLogger(__name__)

_node_ids = itertools.count(1)

DestroyHook = Callable[["Node"], None]


class Node:
    """A producer/consumer in the display graph."""

    def __init__(
        self,
        *,
        inbound: Mapping[Hashable, "Node"] | Iterable["Node"] | None = None,
        on_destroy: DestroyHook | None = None,
    ) -> None:
        self.node_id = next(_node_ids)
        self.output: Any = None
        self.destroyed = False
        self._inbound: dict[Hashable, Node] = {}
        self._outbound: list[Node] = []
        self._destroy_hooks: list[DestroyHook] = [on_destroy] if on_destroy else []

        if isinstance(inbound, Mapping):
            items = list(inbound.items())
        else:
            items = [(node.node_id, node) for node in inbound or ()]
        for key, node in items:
            self._link(key, node)

    @property
    def inbound(self) -> dict[Hashable, "Node"]:
        """Return the inbound producers in insertion order."""

        return dict(self._inbound)

    def render(self, inputs: dict[Hashable, Any]) -> Any:
        """Compute this node's output from its producers' outputs."""

        return None

    def add_destroy_hook(self, hook: DestroyHook) -> None:
        self._destroy_hooks.append(hook)

    def insert(self, node: "Node", key: Hashable | None = None) -> None:
        """Add ``node`` as a producer of this node and re-render."""

        if self.destroyed or node.destroyed:
            return
        self._link(node.node_id if key is None else key, node)
        self.request_render()

    def request_render(self) -> None:
        if self.destroyed:
            return
        inputs = {key: node.output for key, node in self._inbound.items()}
        self.output = self.render(inputs)
        for consumer in list(self._outbound):
            consumer.request_render()

    def request_destroy(self) -> None:
        """Destroy this node; destroying twice is a no-op."""

        if self.destroyed:
            return
        self.destroyed = True

        for producer in self._inbound.values():
            if self in producer._outbound:
                producer._outbound.remove(self)
        self._inbound.clear()

        consumers, self._outbound = self._outbound, []
        for consumer in consumers:
            consumer._unlink(self)

        for hook in self._destroy_hooks:
            hook(self)
        logger.debug("Display node destroyed", extra={"node_id": self.node_id})

    def _link(self, key: Hashable, node: "Node") -> None:
        previous = self._inbound.get(key)
        if previous is not None and previous is not node and self in previous._outbound:
            previous._outbound.remove(self)
        self._inbound[key] = node
        if self not in node._outbound:
            node._outbound.append(self)

    def _unlink(self, node: "Node") -> None:
        for key, producer in list(self._inbound.items()):
            if producer is node:
                del self._inbound[key]
        self.request_render()


__all__ = ["DestroyHook", "Node"]
