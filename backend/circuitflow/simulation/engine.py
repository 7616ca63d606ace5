"""Circuit Simulation Engine — reachability-based circuit completion.

Pure Python. No analog solving. Fully unit-testable.

A component is powered iff it sits on a directed path that leaves a
source's `plus` terminal and returns to the *same* source's `minus`
terminal, through user wires (conducting both ways) and the internal
edges each component declares from its current data.

Pass:
  1. Partition nodes into independently wired clusters
  2. Per cluster: build the handle-level graph, BFS from every source
  3. Derive every node's state from the aggregated completed-path set
  4. Return the original list when nothing changed, a new one otherwise

Input:  list[CircuitNode], list[CircuitEdge]
Output: list[CircuitNode] (same object when the pass was a no-op)
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from circuitflow.catalog import ELECTRICAL_REGISTRY, SOURCE_TYPES
from circuitflow.definitions import battery
from circuitflow.schemas.circuit import CircuitEdge, CircuitNode
from circuitflow.simulation.types import (
    EXTERNALLY_DRIVEN_FLAG,
    ElectricalDefinition,
    HandleRef,
    InternalEdge,
    TraversalContext,
    handle_key,
)

logger = logging.getLogger(__name__)

SOURCE_PLUS = battery.PLUS
SOURCE_MINUS = battery.MINUS


# ─── Internal Helpers ───


def _node_map(nodes: Iterable[CircuitNode]) -> dict[str, CircuitNode]:
    """Build id→node lookup for O(1) access."""
    return {n.id: n for n in nodes}


def _as_handle(endpoint) -> HandleRef:
    node_id, handle_id = endpoint
    if not isinstance(node_id, str) or not isinstance(handle_id, str):
        raise TypeError(f"invalid handle endpoint {endpoint!r}")
    return HandleRef(node_id, handle_id)


def _wire_endpoints(edge: CircuitEdge) -> tuple[HandleRef, HandleRef]:
    return (
        HandleRef(edge.source, edge.source_handle or ""),
        HandleRef(edge.target, edge.target_handle or ""),
    )


# ═══════════════════════════════════════════════════════════
# Step 1: Connectivity Partitioner
# ═══════════════════════════════════════════════════════════


def find_connected_components(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
) -> list[set[str]]:
    """Split the node set into clusters joined by user wires.

    Node-level and undirected: handles and wire direction are ignored.
    Every node lands in exactly one cluster, unwired nodes as singletons.
    Wires that reference a missing node are ignored.
    """
    adjacency: dict[str, set[str]] = {n.id: set() for n in nodes}

    for edge in edges:
        if edge.source not in adjacency or edge.target not in adjacency:
            continue
        adjacency[edge.source].add(edge.target)
        adjacency[edge.target].add(edge.source)

    visited: set[str] = set()
    components: list[set[str]] = []

    for node in nodes:
        if node.id in visited:
            continue
        component: set[str] = set()
        stack = [node.id]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            component.add(current)
            stack.extend(n for n in adjacency[current] if n not in visited)
        components.append(component)

    return components


def partition_edges(
    partitions: list[set[str]],
    edges: Iterable[CircuitEdge],
) -> list[list[CircuitEdge]]:
    """Bucket wires by the partition holding both endpoints, in one scan.

    Wires touching a node outside every partition are dropped.
    """
    index = {node_id: i for i, part in enumerate(partitions) for node_id in part}
    buckets: list[list[CircuitEdge]] = [[] for _ in partitions]

    for edge in edges:
        source_part = index.get(edge.source)
        if source_part is not None and source_part == index.get(edge.target):
            buckets[source_part].append(edge)

    return buckets


# ═══════════════════════════════════════════════════════════
# Step 2: Per-Component Path Tracer
# ═══════════════════════════════════════════════════════════


def build_wire_graph(
    edges: Iterable[CircuitEdge],
    node_ids: set[str] | None = None,
) -> dict[str, list[HandleRef]]:
    """Handle-level adjacency of user wires, one entry per direction.

    With `node_ids`, wires with an endpoint outside that set are dropped.
    """
    graph: dict[str, list[HandleRef]] = {}

    for edge in edges:
        if node_ids is not None and (
            edge.source not in node_ids or edge.target not in node_ids
        ):
            continue
        source, target = _wire_endpoints(edge)
        graph.setdefault(source.key, []).append(target)
        graph.setdefault(target.key, []).append(source)

    return graph


def collect_internal_edges(
    nodes: Iterable[CircuitNode],
    registry: Mapping[str, ElectricalDefinition],
) -> list[InternalEdge]:
    """Regenerate every node's internal edges from its current data.

    A definition that raises, or returns something other than pairs of
    (node_id, handle_id) endpoints, contributes nothing; the error is
    logged and the rest of the pass carries on.
    """
    internal: list[InternalEdge] = []

    for node in nodes:
        definition = registry.get(node.type)
        if definition is None:
            continue
        try:
            declared = [
                InternalEdge(_as_handle(source), _as_handle(target))
                for source, target in definition.internal_edges(node.id, node.data)
            ]
            internal.extend(declared)
        except Exception as exc:
            logger.error(
                "internal_edges failed for node %s (%s): %s", node.id, node.type, exc
            )

    return internal


def build_circuit_graph(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
    registry: Mapping[str, ElectricalDefinition],
) -> dict[str, list[HandleRef]]:
    """Directed handle graph: wires both ways plus declared internal edges."""
    graph = build_wire_graph(edges, {n.id for n in nodes})

    for internal in collect_internal_edges(nodes, registry):
        graph.setdefault(internal.source.key, []).append(internal.target)

    return graph


def trace_completed_paths(
    graph: Mapping[str, list[HandleRef]],
    source_id: str,
) -> set[str]:
    """BFS from a source's plus terminal back to its own minus terminal.

    Each queue entry carries the distinct nodes visited on its path; the
    list only grows when a hop crosses into another node. Every arrival at
    the minus terminal adds its whole path to the result, so parallel
    branches are all found. Any other handle is expanded at most once,
    which keeps cyclic wiring finite.

    Limitation: branches that re-converge on a shared handle before the
    minus terminal (two LED cathodes wired to one button input, say) only
    record the branch that reached that handle first.
    """
    completed: set[str] = set()
    visited: set[str] = set()
    queue: deque[tuple[HandleRef, tuple[str, ...]]] = deque(
        [(HandleRef(source_id, SOURCE_PLUS), (source_id,))]
    )
    minus_key = handle_key(source_id, SOURCE_MINUS)

    while queue:
        current, path = queue.popleft()
        key = current.key

        # Loop closed; the terminal itself is never expanded
        if key == minus_key:
            completed.update(path)
            continue

        if key in visited:
            continue
        visited.add(key)

        for neighbor in graph.get(key, ()):
            if neighbor.key in visited:
                continue
            if neighbor.node_id != current.node_id:
                queue.append((neighbor, path + (neighbor.node_id,)))
            else:
                queue.append((neighbor, path))

    return completed


def simulate_partition(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
    registry: Mapping[str, ElectricalDefinition],
    source_types: frozenset[str] = SOURCE_TYPES,
) -> set[str]:
    """Completed-path node ids for one wired cluster, OR'ed over its sources."""
    sources = [n for n in nodes if n.type in source_types]
    if not sources:
        return set()

    graph = build_circuit_graph(nodes, edges, registry)
    completed: set[str] = set()

    for source in sources:
        completed |= trace_completed_paths(graph, source.id)

    return completed


# ═══════════════════════════════════════════════════════════
# Step 3: State Deriver & Diffing
# ═══════════════════════════════════════════════════════════


def is_externally_driven(node: CircuitNode) -> bool:
    return bool(node.data.get(EXTERNALLY_DRIVEN_FLAG))


def _differs(data: Mapping, patch: Mapping) -> bool:
    return any(key not in data or data[key] != value for key, value in patch.items())


def derive_node_state(
    node: CircuitNode,
    wire_graph: Mapping[str, list[HandleRef]],
    completed: frozenset[str],
    registry: Mapping[str, ElectricalDefinition],
) -> CircuitNode:
    """Return `node` itself when nothing changes, a merged copy otherwise."""
    if is_externally_driven(node):
        return node

    definition = registry.get(node.type)
    if definition is None:
        return node

    context = TraversalContext(
        graph=wire_graph,
        completed_paths=completed,
        node_id=node.id,
        node_data=node.data,
    )
    try:
        patch = definition.derive_state(context)
        if patch is not None and not isinstance(patch, Mapping):
            raise TypeError(f"expected a mapping or None, got {type(patch).__name__}")
        if not patch or not _differs(node.data, patch):
            return node
        return node.model_copy(update={"data": {**node.data, **patch}})
    except Exception as exc:
        logger.error(
            "derive_state failed for node %s (%s): %s", node.id, node.type, exc
        )
        return node


def derive_states(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
    completed: frozenset[str],
    registry: Mapping[str, ElectricalDefinition],
) -> tuple[list[CircuitNode], bool]:
    """Derive every node's state against the whole circuit's wiring."""
    # Handle keys are globally unique, so one graph serves every partition
    wire_graph = build_wire_graph(edges, {n.id for n in nodes})

    changed = False
    updated: list[CircuitNode] = []
    for node in nodes:
        new_node = derive_node_state(node, wire_graph, completed, registry)
        if new_node is not node:
            changed = True
        updated.append(new_node)

    return updated, changed


# ═══════════════════════════════════════════════════════════
# Simulation Driver
# ═══════════════════════════════════════════════════════════


@dataclass
class SimulationResult:
    nodes: list[CircuitNode]
    changed: bool
    completed_paths: frozenset[str] = field(default_factory=frozenset)


def run_simulation(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
    registry: Mapping[str, ElectricalDefinition] | None = None,
    source_types: frozenset[str] = SOURCE_TYPES,
) -> SimulationResult:
    """Run one full pass: partition → trace → derive → diff."""
    registry = registry if registry is not None else ELECTRICAL_REGISTRY

    node_map = _node_map(nodes)
    partitions = find_connected_components(nodes, edges)
    edge_buckets = partition_edges(partitions, edges)
    completed: set[str] = set()

    for partition, partition_wires in zip(partitions, edge_buckets):
        partition_nodes = [node_map[node_id] for node_id in partition]
        completed |= simulate_partition(
            partition_nodes, partition_wires, registry, source_types
        )

    frozen = frozenset(completed)
    updated, changed = derive_states(nodes, edges, frozen, registry)

    logger.debug(
        "Simulation pass: %d partitions, %d sources, %d nodes in completed paths, "
        "changed=%s",
        len(partitions),
        sum(1 for n in nodes if n.type in source_types),
        len(frozen),
        changed,
    )

    return SimulationResult(
        nodes=updated if changed else nodes,
        changed=changed,
        completed_paths=frozen,
    )


def simulate_circuit(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
    registry: Mapping[str, ElectricalDefinition] | None = None,
) -> list[CircuitNode]:
    """Simulate and return `nodes` itself if no node changed, else a new list."""
    return run_simulation(nodes, edges, registry).nodes
