from fastapi import APIRouter

from circuitflow.catalog import NODE_CATALOG

router = APIRouter()


@router.get("/")
async def list_all_components():
    """Return every registered component type with its default data."""
    return [
        {"type": entry.type, "label": entry.label, "defaults": entry.defaults()}
        for entry in NODE_CATALOG.values()
    ]
