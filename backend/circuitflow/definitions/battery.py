"""Battery — the graph's power source.

No internal routing: current leaves through `plus` and must come back
through `minus` via the external circuit. State is user-owned.
"""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    no_derived_state,
    no_internal_edges,
)

PLUS = "plus"
MINUS = "minus"

ELECTRICAL = ElectricalDefinition(
    internal_edges=no_internal_edges,
    derive_state=no_derived_state,
)
