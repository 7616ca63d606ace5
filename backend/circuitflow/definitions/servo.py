"""Servo — vcc → gnd. The signal pin carries no supply current."""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [one_way(node_id, "vcc", "gnd")]


def derive_state(context: TraversalContext) -> dict:
    return {"isPowered": context.in_completed_path}


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
