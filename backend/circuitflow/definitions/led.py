"""LED — conducts anode → cathode only."""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [one_way(node_id, "anode", "cathode")]


def derive_state(context: TraversalContext) -> dict:
    # Both legs must be wired; a loop through one leg is not a powered LED.
    is_powered = (
        context.is_connected("anode")
        and context.is_connected("cathode")
        and context.in_completed_path
    )
    return {"isPowered": is_powered}


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
