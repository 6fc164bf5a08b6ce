"""
SlopWatch API Server.

FastAPI application with all routes mounted.
Run with: uvicorn api.server:app --port 8000 (or `slopwatch serve`)
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slopwatch import __version__
from slopwatch.service import get_service

from .routes import (
    claims_router,
    config_router,
    stats_router,
    verdicts_router,
)
from .sse import sse_manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Verdicts arrive on the engine thread; bridge them into this loop
    sse_manager.bind_loop(asyncio.get_running_loop())
    get_service().add_verdict_listener(sse_manager.verdict_listener)
    yield


app = FastAPI(
    title="SlopWatch API",
    description="Claim/evidence correlation for AI coding assistants",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount API routes
app.include_router(verdicts_router)
app.include_router(stats_router)
app.include_router(claims_router)
app.include_router(config_router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    service = get_service()
    return {
        "status": "healthy",
        "service": "SlopWatch API",
        "version": __version__,
        "engine_running": service.running,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
