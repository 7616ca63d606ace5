"""Arduino Uno board.

Power routing mimics the on-board regulator: VIN feeds the 5V and 3.3V
rails, every rail drains into both ground pins. All edges point towards
ground, so current can reach a GND pin whichever rail the user wired but
never flows back out of one.

Signal pins (d0-d13, a0-a5, reset, aref) need no internal edges: a wire
on them already conducts both ways.
"""

from __future__ import annotations

from circuitflow.simulation.types import (
    ElectricalDefinition,
    InternalEdge,
    TraversalContext,
    one_way,
)

GROUNDS = ("gnd1", "gnd2")

# rail -> handles it feeds, ordered from the primary input down
REGULATOR = {
    "vin": ("5v", "3v3") + GROUNDS,
    "5v": ("3v3",) + GROUNDS,
    "3v3": GROUNDS,
}


def internal_edges(node_id: str, _data) -> list[InternalEdge]:
    return [
        one_way(node_id, rail, fed)
        for rail, feeds in REGULATOR.items()
        for fed in feeds
    ]


def derive_state(context: TraversalContext) -> dict:
    supply_connected = context.any_connected(("vin", "5v"))
    ground_connected = context.any_connected(GROUNDS)

    is_powered = supply_connected and ground_connected and context.in_completed_path
    # Built-in LED on D13 only lights when something is wired to d13
    onboard_led_powered = is_powered and context.is_connected("d13")

    return {"isPowered": is_powered, "onboardLedPowered": onboard_led_powered}


ELECTRICAL = ElectricalDefinition(internal_edges, derive_state)
