"""
FastAPI app entry point aggregating routers under dframework/routes.
Keep as `uvicorn dframework.api:app`.
"""
from __future__ import annotations


from fastapi import FastAPI

from . import __version__
from .logs import ensure_log_schema


app = FastAPI(title="dframework-api", version=__version__)


@app.on_event("startup")
def on_startup():
    ensure_log_schema()


# Include routers
from .routes import base as base_routes
from .routes import enrich as enrich_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(enrich_routes.router)
app.include_router(logs_routes.router)
