"""Common-cathode RGB LED: each colour pin feeds the shared cathode."""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)

CHANNELS = ("r", "g", "b")


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [one_way(node_id, channel, "cathode") for channel in CHANNELS]


def derive_state(context: TraversalContext) -> dict:
    return {"isPowered": context.in_completed_path}


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
