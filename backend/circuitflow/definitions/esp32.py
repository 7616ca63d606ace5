"""ESP32 DevKit — 3.3V rail draining into any of three ground pins."""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)

GROUNDS = ("gnd1", "gnd2", "gnd3")


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [one_way(node_id, "3v3", gnd) for gnd in GROUNDS]


def derive_state(context: TraversalContext) -> dict:
    is_powered = (
        context.is_connected("3v3")
        and context.any_connected(GROUNDS)
        and context.in_completed_path
    )
    return {"isPowered": is_powered}


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
