from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from circuitflow.schemas.circuit import CircuitNode


class SimulationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nodes: list[CircuitNode] = Field(default_factory=list)
    changed: bool = False
    # Nodes on at least one completed source loop
    powered_node_ids: list[str] = Field(default_factory=list, alias="poweredNodeIds")
