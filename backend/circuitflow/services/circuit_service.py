"""Circuit service — persistence of simulated circuit snapshots."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from circuitflow.config import get_settings
from circuitflow.models.circuit import Circuit
from circuitflow.persistence.circuit_file import (
    CircuitFileParseError,
    CircuitFileV1,
    Viewport,
    load_circuit_file,
    serialize_circuit_file,
)
from circuitflow.schemas.circuit import CircuitEdge, CircuitGraph, CircuitNode
from circuitflow.schemas.circuit_crud import (
    CircuitCreate,
    CircuitImportRequest,
    CircuitUpdateGraph,
)
from circuitflow.simulation.engine import simulate_circuit


def _dump(models) -> list[dict]:
    return [m.model_dump(mode="json", by_alias=True) for m in models]


def _simulated(graph: CircuitGraph) -> tuple[list[dict], list[dict]]:
    """Run the engine so the stored copy carries derived state."""
    nodes = simulate_circuit(graph.nodes, graph.edges)
    return _dump(nodes), _dump(graph.edges)


class CircuitService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: CircuitCreate) -> Circuit:
        nodes, edges = _simulated(data.graph)
        circuit = Circuit(name=data.name, nodes=nodes, edges=edges)
        self.db.add(circuit)
        await self.db.flush()
        return circuit

    async def get_by_id(self, circuit_id: uuid.UUID) -> Circuit:
        stmt = select(Circuit).where(Circuit.id == circuit_id)
        result = await self.db.execute(stmt)
        circuit = result.scalar_one_or_none()
        if not circuit:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Circuit {circuit_id} not found",
            )
        return circuit

    async def list_all(self) -> list[Circuit]:
        stmt = select(Circuit).order_by(Circuit.updated_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_graph(
        self, circuit_id: uuid.UUID, data: CircuitUpdateGraph
    ) -> Circuit:
        circuit = await self.get_by_id(circuit_id)
        circuit.nodes, circuit.edges = _simulated(data.graph)
        circuit.version += 1
        await self.db.flush()
        return circuit

    async def import_file(self, data: CircuitImportRequest) -> Circuit:
        try:
            flow = load_circuit_file(data.content).flow
        except CircuitFileParseError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            )

        circuit = Circuit(
            name=data.name,
            nodes=_dump(flow.nodes),
            edges=_dump(flow.edges),
            viewport=flow.viewport.model_dump() if flow.viewport else None,
        )
        self.db.add(circuit)
        await self.db.flush()
        return circuit

    async def export_file(self, circuit_id: uuid.UUID) -> CircuitFileV1:
        circuit = await self.get_by_id(circuit_id)
        return serialize_circuit_file(
            [CircuitNode.model_validate(n) for n in circuit.nodes],
            [CircuitEdge.model_validate(e) for e in circuit.edges],
            viewport=Viewport(**circuit.viewport) if circuit.viewport else None,
            build=get_settings().build,
        )

    async def delete(self, circuit_id: uuid.UUID) -> None:
        circuit = await self.get_by_id(circuit_id)
        await self.db.delete(circuit)
        await self.db.flush()
