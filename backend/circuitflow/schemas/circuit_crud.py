"""Pydantic schemas for persisted circuit CRUD operations."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from circuitflow.schemas.circuit import CircuitEdge, CircuitGraph, CircuitNode


# ─── Request Schemas ───


class CircuitCreate(BaseModel):
    name: str = Field(default="Main", min_length=1, max_length=255)
    graph: CircuitGraph = Field(default_factory=CircuitGraph)


class CircuitUpdateGraph(BaseModel):
    """Replace the circuit graph. The stored copy is re-simulated."""

    graph: CircuitGraph


class CircuitImportRequest(BaseModel):
    """A circuit file, as text, to persist."""

    name: str = Field(default="Imported", min_length=1, max_length=255)
    content: str = Field(..., min_length=2)


# ─── Response Schemas ───


class CircuitResponse(BaseModel):
    id: uuid.UUID
    name: str
    version: int
    nodes: list[CircuitNode] = Field(default_factory=list)
    edges: list[CircuitEdge] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
