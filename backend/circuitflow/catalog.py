"""Node catalog — single source of truth for every component type.

Maps a type tag to its display label, the factory for a new node's data
and its electrical definition. The engine only sees the electrical half
(`ELECTRICAL_REGISTRY`).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable

from circuitflow.definitions import (
    arduino_uno,
    battery,
    button,
    buzzer,
    dc_motor,
    esp32,
    lcd16x2,
    led,
    rgb_led,
    servo,
    seven_segment,
)
from circuitflow.schemas.circuit import CircuitNode, Position
from circuitflow.schemas.component import (
    ArduinoUnoData,
    BatteryData,
    BuzzerData,
    ButtonData,
    ComponentData,
    DCMotorData,
    Esp32Data,
    LCD16x2Data,
    LedData,
    RgbLedData,
    ServoData,
    SevenSegmentData,
)
from circuitflow.simulation.types import ElectricalDefinition


class UnknownNodeTypeError(ValueError):
    pass


@dataclass(frozen=True)
class CatalogEntry:
    type: str
    label: str
    data_model: type[ComponentData]
    electrical: ElectricalDefinition

    def defaults(self, label: str | None = None) -> dict:
        return self.data_model(label=label or self.label).to_data()


_ENTRIES: list[CatalogEntry] = [
    CatalogEntry("battery", "Battery", BatteryData, battery.ELECTRICAL),
    CatalogEntry("led", "LED", LedData, led.ELECTRICAL),
    CatalogEntry("button", "Button", ButtonData, button.ELECTRICAL),
    CatalogEntry("buzzer", "Buzzer", BuzzerData, buzzer.ELECTRICAL),
    CatalogEntry("dc-motor", "DC Motor", DCMotorData, dc_motor.ELECTRICAL),
    CatalogEntry("servo", "Servo Motor", ServoData, servo.ELECTRICAL),
    CatalogEntry("lcd16x2", "LCD 16x2", LCD16x2Data, lcd16x2.ELECTRICAL),
    CatalogEntry("rgb-led", "RGB LED", RgbLedData, rgb_led.ELECTRICAL),
    CatalogEntry(
        "seven-segment", "7-Segment Display", SevenSegmentData, seven_segment.ELECTRICAL
    ),
    CatalogEntry("arduino-uno", "Arduino Uno", ArduinoUnoData, arduino_uno.ELECTRICAL),
    CatalogEntry("esp32", "ESP32 DevKit", Esp32Data, esp32.ELECTRICAL),
]

NODE_CATALOG: dict[str, CatalogEntry] = {entry.type: entry for entry in _ENTRIES}

ELECTRICAL_REGISTRY: dict[str, ElectricalDefinition] = {
    entry.type: entry.electrical for entry in _ENTRIES
}

# Types whose plus/minus terminals root a completed-circuit search
SOURCE_TYPES = frozenset({"battery"})


def is_valid_node_type(node_type: str) -> bool:
    return node_type in NODE_CATALOG


def get_catalog_entry(node_type: str) -> CatalogEntry | None:
    return NODE_CATALOG.get(node_type)


def create_default_node(
    node_type: str,
    position: Position | None = None,
    node_id: str | None = None,
) -> CircuitNode:
    """Create a node of a registered type with its default data."""
    entry = get_catalog_entry(node_type)
    if entry is None:
        raise UnknownNodeTypeError(
            f'Unknown node type "{node_type}". '
            f"Valid types: {', '.join(NODE_CATALOG)}"
        )
    return CircuitNode(
        id=node_id or str(uuid.uuid4()),
        type=node_type,
        position=position or Position(),
        data=entry.defaults(entry.label),
    )
