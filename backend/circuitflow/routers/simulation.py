"""Simulation router — stateless engine pass over a posted graph."""

from __future__ import annotations

from fastapi import APIRouter

from circuitflow.schemas.circuit import CircuitGraph
from circuitflow.schemas.simulation import SimulationResponse
from circuitflow.simulation.engine import run_simulation

router = APIRouter()


@router.post("/run", response_model=SimulationResponse)
async def simulate(graph: CircuitGraph):
    """Derive every component's state for the posted nodes and wires."""
    result = run_simulation(graph.nodes, graph.edges)
    return SimulationResponse(
        nodes=result.nodes,
        changed=result.changed,
        powered_node_ids=sorted(result.completed_paths),
    )
