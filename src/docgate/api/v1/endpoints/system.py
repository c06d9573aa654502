"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from docgate.api.v1.dependencies import GateDep
from docgate.core.settings import settings
from docgate.schemas.system import PublicConfig

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config", response_model=PublicConfig)
async def get_public_config(gate: GateDep) -> PublicConfig:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and file locations.
    """
    return PublicConfig(
        app_name=settings.app_name,
        app_version=settings.app_version,
        jwt_algorithm=settings.jwt_algorithm,
        session_ttl_seconds=int(gate.session_ttl.total_seconds()),
        challenge_ttl_seconds=int(gate.challenges.ttl.total_seconds()),
        allowlist_size=len(gate.allowlist),
    )
