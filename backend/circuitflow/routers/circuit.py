"""Circuit router — persisted circuits, import and export."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from circuitflow.db.session import get_db
from circuitflow.services.circuit_service import CircuitService
from circuitflow.schemas.circuit_crud import (
    CircuitCreate,
    CircuitImportRequest,
    CircuitUpdateGraph,
    CircuitResponse,
)

router = APIRouter()


def _get_service(db: AsyncSession = Depends(get_db)) -> CircuitService:
    return CircuitService(db)


@router.post("/", response_model=CircuitResponse, status_code=201)
async def create_circuit(
    data: CircuitCreate,
    service: CircuitService = Depends(_get_service),
):
    """Create a circuit, simulating its graph before storing it."""
    circuit = await service.create(data)
    return CircuitResponse.model_validate(circuit)


@router.get("/", response_model=list[CircuitResponse])
async def list_circuits(service: CircuitService = Depends(_get_service)):
    """List all circuits, most recently updated first."""
    circuits = await service.list_all()
    return [CircuitResponse.model_validate(c) for c in circuits]


@router.post("/import", response_model=CircuitResponse, status_code=201)
async def import_circuit(
    data: CircuitImportRequest,
    service: CircuitService = Depends(_get_service),
):
    """Persist a circuit file. Derived state is recomputed on load."""
    circuit = await service.import_file(data)
    return CircuitResponse.model_validate(circuit)


@router.get("/{circuit_id}", response_model=CircuitResponse)
async def get_circuit(
    circuit_id: uuid.UUID,
    service: CircuitService = Depends(_get_service),
):
    circuit = await service.get_by_id(circuit_id)
    return CircuitResponse.model_validate(circuit)


@router.put("/{circuit_id}/graph", response_model=CircuitResponse)
async def update_circuit_graph(
    circuit_id: uuid.UUID,
    data: CircuitUpdateGraph,
    service: CircuitService = Depends(_get_service),
):
    """Replace the circuit graph. Re-simulates and bumps the version."""
    circuit = await service.update_graph(circuit_id, data)
    return CircuitResponse.model_validate(circuit)


@router.get("/{circuit_id}/export")
async def export_circuit(
    circuit_id: uuid.UUID,
    service: CircuitService = Depends(_get_service),
):
    """Return the circuit as a circuit-flow v1 document."""
    document = await service.export_file(circuit_id)
    return document.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.delete("/{circuit_id}", status_code=204)
async def delete_circuit(
    circuit_id: uuid.UUID,
    service: CircuitService = Depends(_get_service),
):
    """Delete a circuit."""
    await service.delete(circuit_id)
