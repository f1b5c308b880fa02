"""InitService — scaffold a new community site.

Writes a sparse ``lockerctl.toml`` (only the values that differ from the
code defaults, plus the community identity) and creates the state
directory with an empty database.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pydantic

from lockerctl.config.discovery import CONFIG_FILENAME
from lockerctl.config.models import CommunityConfig, StorageConfig
from lockerctl.infrastructure.database.engine import init_database
from lockerctl.services.result import ServiceError, ServiceResult

logger = logging.getLogger(__name__)


def _render_toml(community: CommunityConfig) -> str:
    # JSON string escapes are valid TOML basic strings.
    return (
        "[community]\n"
        f"id = {json.dumps(community.id)}\n"
        f"name = {json.dumps(community.name)}\n"
    )


class InitService:
    """Site scaffolding. Runs before any Community exists."""

    @staticmethod
    def init_community(
        site_root: Path,
        *,
        community_id: str,
        name: str,
        storage: StorageConfig | None = None,
    ) -> ServiceResult:
        op = "init_community"
        site_root = site_root.resolve()
        config_path = site_root / CONFIG_FILENAME
        if config_path.exists():
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="ALREADY_INITIALIZED",
                    message=f"A lockerctl site already exists at {site_root}",
                    detail={"path": str(config_path)},
                ),
            )

        try:
            community = CommunityConfig(id=community_id.strip(), name=name.strip())
        except pydantic.ValidationError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="VALIDATION_FAILED",
                    message=f"Invalid community: {exc.errors()[0]['msg']}",
                ),
            )

        storage = storage or StorageConfig()
        site_root.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_render_toml(community), encoding="utf-8")
        engine = init_database(site_root, db_dir=storage.db_dir, db_name=storage.db_name)
        engine.dispose()
        logger.debug("Initialized community %s at %s", community.id, site_root)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "community_id": community.id,
                "name": community.name,
                "config_path": str(config_path),
                "state_dir": str(site_root / storage.db_dir),
            },
        )
