from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class CircuitNode(BaseModel):
    """A component placed on the canvas.

    `data` is opaque to the engine except for the fields a component's
    electrical definition reads or derives.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    type: str  # battery, led, button, arduino-uno, ...
    position: Position = Field(default_factory=Position)
    data: dict[str, Any] = Field(default_factory=dict)
    selected: bool = False


class CircuitEdge(BaseModel):
    """A user-drawn wire between two handles. Polarity-free."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    source: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target: str
    target_handle: str | None = Field(default=None, alias="targetHandle")
    data: dict[str, Any] = Field(default_factory=dict)


class Connection(BaseModel):
    """A wire the user just dragged, before it becomes an edge."""

    model_config = ConfigDict(populate_by_name=True)

    source: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target: str
    target_handle: str | None = Field(default=None, alias="targetHandle")

    @property
    def edge_id(self) -> str:
        return (
            f"xy-edge__{self.source}{self.source_handle or ''}"
            f"-{self.target}{self.target_handle or ''}"
        )


class CircuitGraph(BaseModel):
    nodes: list[CircuitNode] = Field(default_factory=list)
    edges: list[CircuitEdge] = Field(default_factory=list)
