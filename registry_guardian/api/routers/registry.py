"""
Registry Guardian — Introspection REST Router

Read-only projections of guardian state, plus one explicit manual run.

Endpoints:
  GET  /api/v1/validation/status                  — Enforcement level and bypass per collection
  GET  /api/v1/write-gates                        — Minimum role per operation, every gated collection
  GET  /api/v1/write-gates/{collection}           — Same, one collection
  GET  /api/v1/consistency                        — Monitor status and registered checks
  POST /api/v1/consistency/run                    — Run all checks, or one (ADMIN only)
  GET  /api/v1/agents/{agent_id}/launch-readiness — Launch gates for one agent
  GET  /api/v1/monitoring/agents                  — Performance dashboard, or one agent

The caller's role arrives already resolved in the role header.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from registry_guardian.primitives.common import Role, utc_now
from registry_guardian.primitives.errors import (
    NoWriteGatesError,
    StoreUnavailableError,
    UnknownCheckError,
    UnknownCollectionError,
    UnknownRoleError,
)
from registry_guardian.service import GuardianService
from registry_guardian.systems.authorization.roles import meets_minimum, parse_role
from registry_guardian.systems.scoring.types import Period

logger = structlog.get_logger("registry_guardian.api.registry")

router = APIRouter()


class RunChecksRequest(BaseModel):
    check_name: str | None = None


def _guardian(request: Request) -> GuardianService:
    guardian: GuardianService | None = getattr(request.app.state, "guardian", None)
    if guardian is None:
        raise HTTPException(status_code=503, detail="Registry Guardian not initialized")
    return guardian


def _require_role(request: Request, minimum: Role) -> Role:
    header = request.app.state.config.server.role_header
    raw = request.headers.get(header)
    if not raw:
        raise HTTPException(status_code=401, detail=f"Missing {header} header")
    try:
        role = parse_role(raw)
    except UnknownRoleError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from None
    if not meets_minimum(role, minimum):
        raise HTTPException(status_code=403, detail=f"{minimum.value} access required")
    return role


# ─── Validation ───────────────────────────────────────────────────


@router.get("/api/v1/validation/status")
async def get_validation_status(request: Request) -> dict[str, Any]:
    """Per-collection enforcement status and overall validation health."""
    guardian = _guardian(request)
    config = request.app.state.config.validation
    return {
        "status": "success",
        "timestamp": utc_now().isoformat(),
        "validation": {
            "collections": {
                coll.value: s.model_dump(mode="json")
                for coll, s in guardian.validation.status().items()
            },
            "health": guardian.validation.system_health().model_dump(mode="json"),
        },
        "environment": {
            "default_level": (config.default_level or "enforce"),
            "emergency_bypass": config.emergency_bypass,
            "global_disable": config.disable_all,
        },
    }


# ─── Write gates ──────────────────────────────────────────────────


@router.get("/api/v1/write-gates")
async def get_write_gates(request: Request) -> dict[str, Any]:
    guardian = _guardian(request)
    return {
        "status": "success",
        "collections": {
            coll.value: gates.model_dump(mode="json")
            for coll, gates in guardian.write_gate.summary().items()
        },
    }


@router.get("/api/v1/write-gates/{collection}")
async def get_collection_write_gates(collection: str, request: Request) -> dict[str, Any]:
    guardian = _guardian(request)
    try:
        gates = guardian.write_gate.describe_gates(collection)
    except (UnknownCollectionError, NoWriteGatesError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    return {"status": "success", "gates": gates.model_dump(mode="json")}


# ─── Consistency ──────────────────────────────────────────────────


@router.get("/api/v1/consistency")
async def get_consistency_status(request: Request) -> dict[str, Any]:
    guardian = _guardian(request)
    return guardian.monitor.status().model_dump(mode="json")


@router.post("/api/v1/consistency/run")
async def run_consistency_checks(request: Request, body: RunChecksRequest | None = None) -> dict[str, Any]:
    """Manual run. ADMIN only."""
    guardian = _guardian(request)
    role = _require_role(request, Role.ADMIN)
    check_name = body.check_name if body else None
    logger.info("consistency_manual_run", role=role.value, check=check_name or "all")

    if check_name:
        try:
            result = await guardian.monitor.run_check(check_name)
        except UnknownCheckError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from None
        return {"success": True, "result": result.model_dump(mode="json")}

    report = await guardian.monitor.trigger()
    return {"success": True, "result": report.model_dump(mode="json")}


# ─── Scoring ──────────────────────────────────────────────────────


@router.get("/api/v1/agents/{agent_id}/launch-readiness")
async def get_launch_readiness(agent_id: str, request: Request) -> dict[str, Any]:
    guardian = _guardian(request)
    readiness = await guardian.launch.validate(agent_id)
    return {"status": "success", "readiness": readiness.model_dump(mode="json")}


@router.get("/api/v1/monitoring/agents")
async def get_agent_monitoring(
    request: Request,
    period: Period = Period.WEEKLY,
    agent: str | None = None,
) -> dict[str, Any]:
    """Dashboard for every active agent, or one agent's report with ``?agent=``."""
    guardian = _guardian(request)
    try:
        if agent:
            report = await guardian.performance.report(agent, period)
            if report is None:
                raise HTTPException(status_code=404, detail="Agent not found")
            return {"agent": report.model_dump(mode="json"), "timestamp": utc_now().isoformat()}

        dashboard = await guardian.performance.dashboard(period)
    except StoreUnavailableError as exc:
        logger.warning("monitoring_unavailable", error=str(exc))
        raise HTTPException(status_code=503, detail="Failed to generate monitoring data") from None

    return {
        "dashboard": dashboard.model_dump(mode="json"),
        "message": f"Performance monitoring data for {dashboard.total_agents} agents",
        "generated": utc_now().isoformat(),
    }
