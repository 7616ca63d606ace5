"""Buzzer — two pins, positive → ground."""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [one_way(node_id, "positive", "ground")]


def derive_state(context: TraversalContext) -> dict:
    return {"isActive": context.in_completed_path}


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
