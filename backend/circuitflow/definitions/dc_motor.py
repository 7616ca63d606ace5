"""DC motor — positive → negative.

Speed is left to whoever drives the motor; the engine only decides
whether it runs and forces the direction to "stopped" when it doesn't.
"""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [one_way(node_id, "positive", "negative")]


def derive_state(context: TraversalContext) -> dict:
    is_running = context.in_completed_path
    return {
        "isRunning": is_running,
        "direction": "cw" if is_running else "stopped",
    }


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
