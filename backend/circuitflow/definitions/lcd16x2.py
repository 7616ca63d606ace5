"""16x2 character LCD.

The real part has VSS, VDD, RS, RW, E, D0-D7 and backlight A/K pins;
for power detection only vcc → gnd matters.
"""

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
