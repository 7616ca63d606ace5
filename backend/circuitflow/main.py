"""CircuitFlow — circuit simulation backend

Responsibilities:
  1. Stateless simulation of posted circuit graphs
  2. Component catalog
  3. Circuit persistence (async SQLAlchemy) with file import/export

Canvas editing and sketch execution live in the frontend; both feed
graphs into the same engine.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from circuitflow.config import get_settings
from circuitflow.db.session import init_db, close_db, is_db_available
from circuitflow.routers import simulation, components, circuit

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables. Shutdown: close DB pool."""
    await init_db()
    yield
    await close_db()


def create_app() -> FastAPI:
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    application = FastAPI(
        title=settings.app_name,
        version=VERSION,
        description=(
            "CircuitFlow — digital circuit completion simulator.\n\n"
            "Decides which components sit on a closed loop from a battery's "
            "+ terminal back to its - terminal and derives their state."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Simulation (stateless) ───
    application.include_router(
        simulation.router, prefix="/api/simulation", tags=["Simulation"]
    )

    # ─── Component catalog ───
    application.include_router(
        components.router, prefix="/api/components", tags=["Components"]
    )

    # ─── Circuit persistence ───
    application.include_router(
        circuit.router, prefix="/api/circuits", tags=["Circuits"]
    )

    return application


app = create_app()


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "service": "circuitflow",
        "version": VERSION,
        "database": is_db_available(),
    }
