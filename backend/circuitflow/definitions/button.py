"""Push button — a bidirectional conductor while closed, open circuit otherwise.

`isClosed` is toggled by the user and never derived.
"""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    no_derived_state,
    one_way,
)


def internal_edges(node_id: str, data) -> list[InternalEdge]:
    if not data.get("isClosed"):
        return []
    return [
        one_way(node_id, "in", "out"),
        one_way(node_id, "out", "in"),
    ]


ELECTRICAL = ElectricalDefinition(internal_edges, no_derived_state)
