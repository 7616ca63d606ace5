"""External driver adapter — board pin values ↔ component data.

A running sketch owns the components wired to its output pins. Every
patch produced here carries the externally-driven flag so the engine
leaves those nodes alone until control is released.

Output flow: digitalWrite / analogWrite → LED, motor, servo, buzzer, ...
Input flow:  button state → digitalRead
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from circuitflow.schemas.circuit import CircuitEdge, CircuitNode
from circuitflow.simulation.types import EXTERNALLY_DRIVEN_FLAG

UNO_DIGITAL_PINS = 14  # d0-d13
UNO_ANALOG_PINS = 6  # a0-a5, numbered 14-19
PWM_MAX = 255
SERVO_MAX_ANGLE = 180
BUZZER_FREQUENCY_HZ = 1000


class PinMode(str, Enum):
    INPUT = "INPUT"
    OUTPUT = "OUTPUT"


class PinState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: PinMode
    value: int = Field(default=0, ge=0, le=PWM_MAX)  # 0-1 digital, 0-255 PWM
    pwm_value: int | None = Field(default=None, alias="pwmValue", ge=0, le=PWM_MAX)


# ─── Pin naming ───


def handle_id_to_pin_number(handle_id: str) -> int | None:
    """d0-d13 → 0-13, a0-a5 → 14-19, anything else → None."""
    prefix, digits = handle_id[:1], handle_id[1:]
    if not digits.isdigit():
        return None

    number = int(digits)
    if prefix == "d" and number < UNO_DIGITAL_PINS:
        return number
    if prefix == "a" and number < UNO_ANALOG_PINS:
        return UNO_DIGITAL_PINS + number
    return None


def pin_number_to_handle_id(pin_number: int) -> str | None:
    if 0 <= pin_number < UNO_DIGITAL_PINS:
        return f"d{pin_number}"
    if UNO_DIGITAL_PINS <= pin_number < UNO_DIGITAL_PINS + UNO_ANALOG_PINS:
        return f"a{pin_number - UNO_DIGITAL_PINS}"
    return None


def connected_nodes(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
    mcu_id: str,
    pin_handle: str,
) -> list[CircuitNode]:
    """Nodes with a wire landing on `mcu_id`'s `pin_handle`."""
    by_id = {n.id: n for n in nodes}
    found: list[CircuitNode] = []

    for edge in edges:
        if edge.source == mcu_id and edge.source_handle == pin_handle:
            peer = by_id.get(edge.target)
        elif edge.target == mcu_id and edge.target_handle == pin_handle:
            peer = by_id.get(edge.source)
        else:
            continue
        if peer is not None:
            found.append(peer)

    return found


# ─── Output: pin → component ───


def _led_patch(pin: PinState) -> dict:
    if pin.pwm_value is not None:
        return {"isPowered": pin.pwm_value > 0, "brightness": pin.pwm_value / PWM_MAX}
    return {"isPowered": pin.value > 0, "brightness": 1}


def _rgb_led_patch(pin: PinState) -> dict | None:
    # A single pin only drives the red channel
    if pin.pwm_value is None:
        return None
    return {"isPowered": pin.pwm_value > 0, "red": pin.pwm_value, "green": 0, "blue": 0}


def _dc_motor_patch(pin: PinState) -> dict:
    if pin.pwm_value is not None:
        speed = round(pin.pwm_value / PWM_MAX * 100)
    else:
        speed = 100 if pin.value > 0 else 0
    return {
        "isRunning": speed > 0,
        "speed": speed,
        "direction": "cw" if speed > 0 else "stopped",
    }


def _servo_patch(pin: PinState) -> dict | None:
    if pin.pwm_value is None:
        return None
    return {
        "angle": round(pin.pwm_value / PWM_MAX * SERVO_MAX_ANGLE),
        "isPowered": True,
    }


def _buzzer_patch(pin: PinState) -> dict:
    on = pin.value > 0
    return {"isActive": on, "frequency": BUZZER_FREQUENCY_HZ if on else 0}


def _power_patch(pin: PinState) -> dict:
    return {"isPowered": pin.value > 0}


OUTPUT_PATCHES = {
    "led": _led_patch,
    "rgb-led": _rgb_led_patch,
    "dc-motor": _dc_motor_patch,
    "servo": _servo_patch,
    "buzzer": _buzzer_patch,
    "lcd16x2": _power_patch,
    "seven-segment": _power_patch,
}


def pin_output_patch(node: CircuitNode, pin: PinState) -> dict | None:
    """Data patch for a component wired to an output pin, or None."""
    if pin.mode != PinMode.OUTPUT:
        return None

    build = OUTPUT_PATCHES.get(node.type)
    if build is not None:
        patch = build(pin)
    elif "isPowered" in node.data:
        patch = _power_patch(pin)
    else:
        patch = None

    if patch is None:
        return None
    return {**patch, EXTERNALLY_DRIVEN_FLAG: True}


# ─── Input: component → pin ───


def pin_input_value(node: CircuitNode) -> int | None:
    """Value the board reads from a component on an INPUT_PULLUP pin."""
    if node.type == "button":
        # Closed pulls the line to ground
        return 0 if node.data.get("isClosed") else 1
    return None
