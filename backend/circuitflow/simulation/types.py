"""Contract between the simulation engine and per-type electrical definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, NamedTuple

# Data flag written by an external driver; the engine never derives state
# for a node carrying it.
EXTERNALLY_DRIVEN_FLAG = "arduinoControlled"


class HandleRef(NamedTuple):
    """A terminal on a node: the atomic unit of the connectivity graph."""

    node_id: str
    handle_id: str

    @property
    def key(self) -> str:
        return handle_key(self.node_id, self.handle_id)


class InternalEdge(NamedTuple):
    """Directed conduction path declared by a component between its handles."""

    source: HandleRef
    target: HandleRef


def handle_key(node_id: str, handle_id: str) -> str:
    return f"{node_id}:{handle_id}"


# key "nodeId:handleId" -> handles reachable in one hop
HandleGraph = Mapping[str, list[HandleRef]]


@dataclass(frozen=True)
class TraversalContext:
    """Read-only view handed to a derive function.

    `graph` holds user wires only (both directions), so it answers "is this
    terminal wired to anything". `completed_paths` holds the ids of every
    node sitting on at least one loop from a source's plus terminal back
    to the same source's minus terminal.
    """

    graph: HandleGraph
    completed_paths: frozenset[str]
    node_id: str
    node_data: Mapping[str, Any]

    def is_connected(self, handle_id: str) -> bool:
        return len(self.graph.get(handle_key(self.node_id, handle_id), ())) > 0

    def any_connected(self, handle_ids) -> bool:
        return any(self.is_connected(h) for h in handle_ids)

    @property
    def in_completed_path(self) -> bool:
        return self.node_id in self.completed_paths


InternalEdgesFn = Callable[[str, Mapping[str, Any]], list[InternalEdge]]
DeriveStateFn = Callable[[TraversalContext], "dict[str, Any] | None"]


@dataclass(frozen=True)
class ElectricalDefinition:
    """How current flows inside a component and how its state is derived.

    `internal_edges(node_id, data)` is re-evaluated on every pass from the
    node's current data. `derive_state(context)` returns the fields to
    merge into the node's data, or None when the type owns no derived
    state.
    """

    internal_edges: InternalEdgesFn
    derive_state: DeriveStateFn


def one_way(node_id: str, source_handle: str, target_handle: str) -> InternalEdge:
    return InternalEdge(
        HandleRef(node_id, source_handle), HandleRef(node_id, target_handle)
    )


def no_internal_edges(_node_id: str, _data: Mapping[str, Any]) -> list[InternalEdge]:
    return []


def no_derived_state(_context: TraversalContext) -> None:
    return None
