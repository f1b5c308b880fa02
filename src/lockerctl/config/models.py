"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, lockerctl.toml only contains
overrides. A fresh site needs nothing but, optionally, [community] name.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CommunityConfig(BaseModel):
    """[community] section."""

    model_config = {"frozen": True}

    id: str = Field(default="community-1", min_length=1)
    name: str = Field(default="my-community", min_length=1)


class StorageConfig(BaseModel):
    """[storage] section.

    With ``persist = false`` all state lives in memory for the lifetime of
    the process.
    """

    model_config = {"frozen": True}

    persist: bool = True
    db_dir: str = ".lockerctl"
    db_name: str = "lockerctl.db"


class GridConfig(BaseModel):
    """[grid] section — defaults for the add-a-grid admin action."""

    model_config = {"frozen": True}

    default_rows: int = Field(default=5, ge=1)
    default_columns: int = Field(default=6, ge=1)


class OtpConfig(BaseModel):
    """[otp] section."""

    model_config = {"frozen": True}

    max_issue_attempts: int = Field(default=64, ge=1)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
