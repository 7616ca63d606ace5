"""Circuit store — the editor's node/edge snapshot and its simulation driver.

Every structural mutation commits a new snapshot and re-runs the engine;
cosmetic ones (drag, select, wire colour) do not. The engine never sees
the store: it gets a snapshot in and hands one back.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from circuitflow.catalog import create_default_node
from circuitflow.drivers.pins import PinState, connected_nodes, pin_output_patch
from circuitflow.schemas.circuit import CircuitEdge, CircuitNode, Connection, Position
from circuitflow.simulation.engine import run_simulation
from circuitflow.simulation.types import EXTERNALLY_DRIVEN_FLAG, ElectricalDefinition

logger = logging.getLogger(__name__)

NEW_NODE_ORIGIN = Position(x=250, y=100)
NEW_NODE_STAGGER = 20
DUPLICATE_OFFSET = 50

# React Flow change types that alter the circuit's structure
STRUCTURAL_CHANGES = frozenset({"add", "remove"})


def _merge_data(node: CircuitNode, patch: Mapping[str, Any]) -> CircuitNode:
    return node.model_copy(update={"data": {**node.data, **patch}})


class CircuitStore:
    def __init__(
        self,
        nodes: list[CircuitNode] | None = None,
        edges: list[CircuitEdge] | None = None,
        registry: Mapping[str, ElectricalDefinition] | None = None,
    ):
        self.nodes: list[CircuitNode] = list(nodes or [])
        self.edges: list[CircuitEdge] = list(edges or [])
        self.registry = registry
        self.powered_leds: set[str] = set()
        self.run_simulation()

    # ─── Simulation ───

    def run_simulation(self) -> bool:
        """Re-derive every node's state. Returns whether anything changed."""
        result = run_simulation(self.nodes, self.edges, self.registry)
        self.nodes = result.nodes
        self.powered_leds = {
            n.id for n in self.nodes if n.type == "led" and n.data.get("isPowered")
        }
        return result.changed

    def load(self, nodes: list[CircuitNode], edges: list[CircuitEdge]) -> None:
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.run_simulation()

    def snapshot(self) -> dict[str, list]:
        return {"nodes": list(self.nodes), "edges": list(self.edges)}

    def get_node(self, node_id: str) -> CircuitNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    # ─── Node actions ───

    def add_node(self, node_type: str) -> CircuitNode:
        offset = len(self.nodes) * NEW_NODE_STAGGER
        node = create_default_node(
            node_type,
            Position(x=NEW_NODE_ORIGIN.x + offset, y=NEW_NODE_ORIGIN.y + offset),
        )
        self.nodes = [*self.nodes, node]
        self.run_simulation()
        return self.get_node(node.id)

    def delete_node(self, node_id: str) -> None:
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.edges = [
            e for e in self.edges if e.source != node_id and e.target != node_id
        ]
        self.run_simulation()

    def duplicate_node(self, node_id: str) -> CircuitNode | None:
        original = self.get_node(node_id)
        if original is None:
            return None

        duplicate = original.model_copy(
            update={
                "id": str(uuid.uuid4()),
                "position": Position(
                    x=original.position.x + DUPLICATE_OFFSET,
                    y=original.position.y + DUPLICATE_OFFSET,
                ),
                "data": dict(original.data),
                "selected": True,
            }
        )
        deselected = [
            n.model_copy(update={"selected": False}) if n.selected else n
            for n in self.nodes
        ]
        self.nodes = [*deselected, duplicate]
        self.run_simulation()
        return self.get_node(duplicate.id)

    def update_node_data(self, node_id: str, patch: Mapping[str, Any]) -> None:
        self.nodes = [
            _merge_data(n, patch) if n.id == node_id else n for n in self.nodes
        ]
        self.run_simulation()

    def toggle_button(self, node_id: str) -> None:
        self.nodes = [
            _merge_data(n, {"isClosed": not n.data.get("isClosed", False)})
            if n.id == node_id and n.type == "button"
            else n
            for n in self.nodes
        ]
        self.run_simulation()

    # ─── Edge actions ───

    def add_edge(self, connection: Connection) -> CircuitEdge | None:
        for edge in self.edges:
            if (
                edge.source == connection.source
                and edge.target == connection.target
                and edge.source_handle == connection.source_handle
                and edge.target_handle == connection.target_handle
            ):
                return None

        edge = CircuitEdge(
            id=connection.edge_id,
            source=connection.source,
            source_handle=connection.source_handle,
            target=connection.target,
            target_handle=connection.target_handle,
        )
        self.edges = [*self.edges, edge]
        self.run_simulation()
        return edge

    def delete_edge(self, edge_id: str) -> None:
        self.edges = [e for e in self.edges if e.id != edge_id]
        self.run_simulation()

    def update_edge_data(self, edge_id: str, patch: Mapping[str, Any]) -> None:
        # Colour / path style only: no simulation
        self.edges = [
            e.model_copy(update={"data": {**e.data, **patch}}) if e.id == edge_id else e
            for e in self.edges
        ]

    # ─── Canvas change batches ───

    def apply_node_changes(self, changes: list[dict]) -> None:
        nodes = list(self.nodes)
        for change in changes:
            kind = change.get("type")
            if kind == "add":
                nodes.append(CircuitNode.model_validate(change["item"]))
            elif kind == "remove":
                nodes = [n for n in nodes if n.id != change["id"]]
            elif kind == "position" and change.get("position"):
                nodes = [
                    n.model_copy(update={"position": Position(**change["position"])})
                    if n.id == change["id"]
                    else n
                    for n in nodes
                ]
            elif kind == "select":
                nodes = [
                    n.model_copy(update={"selected": change["selected"]})
                    if n.id == change["id"]
                    else n
                    for n in nodes
                ]
        self.nodes = nodes

        if any(c.get("type") in STRUCTURAL_CHANGES for c in changes):
            self.run_simulation()

    def apply_edge_changes(self, changes: list[dict]) -> None:
        edges = list(self.edges)
        for change in changes:
            kind = change.get("type")
            if kind == "add":
                edges.append(CircuitEdge.model_validate(change["item"]))
            elif kind == "remove":
                edges = [e for e in edges if e.id != change["id"]]
        self.edges = edges

        if any(c.get("type") in STRUCTURAL_CHANGES for c in changes):
            self.run_simulation()

    # ─── External driver ───

    def apply_pin_outputs(self, mcu_id: str, pin_states: Mapping[str, PinState]) -> int:
        """Push a board's output pins onto the components wired to them.

        Returns the number of nodes patched.
        """
        patches: dict[str, dict] = {}
        for pin_handle, pin_state in pin_states.items():
            for node in connected_nodes(self.nodes, self.edges, mcu_id, pin_handle):
                patch = pin_output_patch(node, pin_state)
                if patch:
                    patches.setdefault(node.id, {}).update(patch)

        if patches:
            self.nodes = [
                _merge_data(n, patches[n.id]) if n.id in patches else n
                for n in self.nodes
            ]
            logger.debug("Pin outputs from %s drove %d nodes", mcu_id, len(patches))
        self.run_simulation()
        return len(patches)

    def release_external_control(self) -> None:
        """Hand every driven node back to the engine (sketch stopped)."""
        released: list[CircuitNode] = []
        for node in self.nodes:
            if node.data.get(EXTERNALLY_DRIVEN_FLAG):
                patch: dict[str, Any] = {EXTERNALLY_DRIVEN_FLAG: False}
                if "isPowered" in node.data:
                    patch["isPowered"] = False
                node = _merge_data(node, patch)
            released.append(node)
        self.nodes = released
        self.run_simulation()
