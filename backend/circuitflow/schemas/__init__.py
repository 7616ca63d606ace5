from circuitflow.schemas.circuit import (
    CircuitNode,
    CircuitEdge,
    CircuitGraph,
    Connection,
    Position,
)
from circuitflow.schemas.simulation import SimulationResponse

__all__ = [
    "CircuitNode",
    "CircuitEdge",
    "CircuitGraph",
    "Connection",
    "Position",
    "SimulationResponse",
]
