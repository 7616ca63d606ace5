"""Per-type component data models.

These describe the `data` payload each node type carries. The engine
itself works on plain dicts; the models are used to build defaults for
new nodes and to document the fields renderers can rely on.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ComponentData(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    label: str
    # Set by an external driver (e.g. a running sketch); see simulation.types
    arduino_controlled: bool | None = None

    def to_data(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class BatteryData(ComponentData):
    voltage: float = 5


class LedData(ComponentData):
    is_powered: bool = False
    color: str = "#ef4444"
    brightness: float | None = None  # 0-1, PWM


class ButtonData(ComponentData):
    is_closed: bool = False


class BuzzerData(ComponentData):
    is_active: bool = False
    frequency: int = 1000  # Hz


class DCMotorData(ComponentData):
    is_running: bool = False
    speed: int = 0  # 0-100%
    direction: Literal["cw", "ccw", "stopped"] = "stopped"


class ServoData(ComponentData):
    is_powered: bool = False
    angle: int = 90  # 0-180 degrees


class CursorPos(BaseModel):
    row: int = 0
    col: int = 0


class LCD16x2Data(ComponentData):
    is_powered: bool = False
    line1: str = Field(default="", max_length=16)
    line2: str = Field(default="", max_length=16)
    backlight: bool = True
    cursor_pos: CursorPos = Field(default_factory=CursorPos)


class RgbLedData(ComponentData):
    is_powered: bool = False
    red: int = Field(default=0, ge=0, le=255)
    green: int = Field(default=0, ge=0, le=255)
    blue: int = Field(default=0, ge=0, le=255)


class Segments(BaseModel):
    a: bool = False
    b: bool = False
    c: bool = False
    d: bool = False
    e: bool = False
    f: bool = False
    g: bool = False
    dp: bool = False


class SevenSegmentData(ComponentData):
    is_powered: bool = False
    digit: int = -1  # -1 = blank
    segments: Segments = Field(default_factory=Segments)


class DigitalPin(BaseModel):
    mode: Literal["INPUT", "OUTPUT"] = "INPUT"
    value: Literal[0, 1] = 0


def _default_uno_pins() -> dict[str, DigitalPin]:
    pins = {f"d{i}": DigitalPin() for i in range(13)}
    pins["d13"] = DigitalPin(mode="OUTPUT")
    return pins


class ArduinoUnoData(ComponentData):
    is_powered: bool = False
    onboard_led_powered: bool = False
    digital_pins: dict[str, DigitalPin] = Field(default_factory=_default_uno_pins)


class Esp32Data(ComponentData):
    is_powered: bool = False
