"""
Registry Guardian — Application Entry Point

FastAPI application hosting the introspection router and the background
consistency monitor.

uvicorn registry_guardian.main:app
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env file before any configuration is loaded
load_dotenv()

from registry_guardian.api.routers.registry import router as registry_router
from registry_guardian.clients.store import InMemoryRegistryStore
from registry_guardian.clients.webhook import LogNotifier, Notifier, WebhookNotifier
from registry_guardian.config import load_config, load_seed
from registry_guardian.service import GuardianService
from registry_guardian.telemetry.logging import setup_logging
from registry_guardian.telemetry.metrics import MetricCollector

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown sequence."""
    # ── 1. Load configuration ─────────────────────────────────
    config_path = os.environ.get("REGISTRY_GUARDIAN_CONFIG_PATH", "config/default.yaml")
    config = load_config(config_path)
    app.state.config = config

    # ── 2. Set up logging ─────────────────────────────────────
    setup_logging(config.logging, instance_id=config.instance_id)
    logger.info("registry_guardian_starting", instance_id=config.instance_id, config_path=config_path)

    # ── 3. Store ──────────────────────────────────────────────
    store = InMemoryRegistryStore()
    if config.seed_path:
        seed = load_seed(config.seed_path)
        for table, rows in seed.tables.items():
            store.seed(table, rows)
        logger.info("store_seed_loaded", tables=len(seed.tables), seed_path=config.seed_path)

    # ── 4. Sinks ──────────────────────────────────────────────
    metrics = MetricCollector(
        flush_interval_ms=config.metrics.flush_interval_ms,
        batch_size=config.metrics.batch_size,
    )
    notifier: Notifier
    if config.webhooks.url:
        notifier = WebhookNotifier(config.webhooks.url, config.webhooks.secret, config.webhooks.timeout_s)
    else:
        notifier = LogNotifier()

    # ── 5. Guardian ───────────────────────────────────────────
    guardian = GuardianService(config, store, metrics, notifier=notifier)
    await guardian.start(monitor=config.consistency.enabled)
    app.state.guardian = guardian
    logger.info("registry_guardian_ready")

    yield

    # ── Shutdown ──────────────────────────────────────────────
    logger.info("registry_guardian_shutting_down")
    await guardian.shutdown()
    if isinstance(notifier, WebhookNotifier):
        await notifier.close()


# ─── FastAPI Application ─────────────────────────────────────────

app = FastAPI(
    title="Registry Guardian",
    description="Policy and consistency enforcement for the agent registry",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS origins come from the environment so they are known before lifespan runs
_cors_origins = ["http://localhost:3000"]
_extra_origins = os.environ.get("CORS_ALLOWED_ORIGINS", "")
if _extra_origins:
    _cors_origins.extend(o.strip() for o in _extra_origins.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(registry_router)


@app.get("/health")
async def health() -> dict[str, Any]:
    """System health check."""
    guardian: GuardianService | None = getattr(app.state, "guardian", None)
    if guardian is None:
        return {"status": "starting"}
    return await guardian.health()
