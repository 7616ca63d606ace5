"""Common-cathode 7-segment display (segments a-g plus decimal point)."""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)

SEGMENTS = ("a", "b", "c", "d", "e", "f", "g", "dp")


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [one_way(node_id, segment, "cathode") for segment in SEGMENTS]


def derive_state(context: TraversalContext) -> dict:
    return {"isPowered": context.in_completed_path}


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
