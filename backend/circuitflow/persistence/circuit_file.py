"""Circuit file format, version 1.

Wraps the editor's flow object (nodes, edges, viewport) with metadata
for versioning and validation:

    {"format": "circuit-flow", "version": 1, "createdAt": "...",
     "app": {"name": "...", "build": "..."}, "flow": {...}}
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from circuitflow.schemas.circuit import CircuitEdge, CircuitNode
from circuitflow.simulation.engine import simulate_circuit

FILE_FORMAT = "circuit-flow"
FILE_VERSION = 1
APP_NAME = "FlowJX Circuit Simulator"


class CircuitFileParseError(ValueError):
    pass


class Viewport(BaseModel):
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


class FlowObject(BaseModel):
    nodes: list[CircuitNode] = Field(default_factory=list)
    edges: list[CircuitEdge] = Field(default_factory=list)
    viewport: Viewport | None = None


class AppInfo(BaseModel):
    name: str | None = None
    build: str | None = None


class CircuitFileV1(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    format: Literal["circuit-flow"] = FILE_FORMAT
    version: Literal[1] = FILE_VERSION
    # Informational only; older or hand-edited files may omit them
    created_at: datetime | str | None = Field(
        default=None, alias="createdAt", union_mode="left_to_right"
    )
    app: AppInfo | None = None
    flow: FlowObject

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def _display(value) -> str:
    """Render a JSON value the way it appears in the file."""
    return json.dumps(value)


def serialize_circuit_file(
    nodes: list[CircuitNode],
    edges: list[CircuitEdge],
    viewport: Viewport | None = None,
    build: str = "dev",
) -> CircuitFileV1:
    return CircuitFileV1(
        created_at=datetime.now(timezone.utc),
        app=AppInfo(name=APP_NAME, build=build),
        flow=FlowObject(nodes=nodes, edges=edges, viewport=viewport),
    )


def parse_circuit_file(json_text: str) -> CircuitFileV1:
    """Parse and validate a circuit file.

    Raises:
        CircuitFileParseError: with a message naming the first problem.
    """
    try:
        parsed = json.loads(json_text)
    except (json.JSONDecodeError, TypeError):
        raise CircuitFileParseError("Invalid JSON file") from None

    if not isinstance(parsed, dict):
        raise CircuitFileParseError("File is not a valid circuit file")

    if parsed.get("format") != FILE_FORMAT:
        raise CircuitFileParseError(
            f"Unsupported file format (expected '{FILE_FORMAT}')"
        )

    version = parsed.get("version")
    # bool is an int subclass: true must not pass for 1
    if isinstance(version, bool) or version != FILE_VERSION:
        raise CircuitFileParseError(
            f"Unsupported file version: {_display(version)} "
            f"(expected {FILE_VERSION})"
        )

    flow = parsed.get("flow")
    if not isinstance(flow, dict):
        raise CircuitFileParseError("Missing or invalid flow data")
    if not isinstance(flow.get("nodes"), list):
        raise CircuitFileParseError("Missing or invalid nodes array")
    if not isinstance(flow.get("edges"), list):
        raise CircuitFileParseError("Missing or invalid edges array")
    if "viewport" in flow and not isinstance(flow["viewport"], dict):
        raise CircuitFileParseError("Invalid viewport data")

    try:
        return CircuitFileV1.model_validate(parsed)
    except ValidationError as exc:
        raise CircuitFileParseError(f"Invalid circuit data: {exc}") from exc


def load_circuit_file(json_text: str) -> CircuitFileV1:
    """Parse a file and re-derive component state for the loaded wiring."""
    document = parse_circuit_file(json_text)
    flow = document.flow
    nodes = simulate_circuit(flow.nodes, flow.edges)
    if nodes is flow.nodes:
        return document
    return document.model_copy(
        update={"flow": flow.model_copy(update={"nodes": nodes})}
    )
