"""Tests for LockerSettings — unified settings with TOML source."""

from pathlib import Path

import pytest

from lockerctl.config.settings import InvalidConfigError, LockerSettings


class TestLockerSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """With no TOML and no env vars, all fields use code defaults."""
        monkeypatch.delenv("LOCKERCTL_STORAGE__PERSIST", raising=False)
        settings = LockerSettings.from_cli(site_root=tmp_path)
        assert settings.site_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.community.id == "community-1"
        assert settings.storage.persist is True
        assert settings.grid.default_rows == 5
        assert settings.otp.max_issue_attempts == 64
        assert settings.plugins.enabled is True

    def test_state_dir(self, tmp_path: Path) -> None:
        settings = LockerSettings.from_cli(site_root=tmp_path, storage={"db_dir": "state"})
        assert settings.state_dir == tmp_path / "state"

    def test_frozen(self, tmp_path: Path) -> None:
        settings = LockerSettings.from_cli(site_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        toml = tmp_path / "lockerctl.toml"
        toml.write_text(
            '[community]\nid = "maple"\nname = "Maple Court"\n[otp]\nmax_issue_attempts = 8\n'
        )
        settings = LockerSettings.from_cli(site_root=tmp_path)
        assert settings.community.name == "Maple Court"
        assert settings.otp.max_issue_attempts == 8
        assert settings.storage.persist is True  # default preserved
        assert settings.config_path == toml

    def test_site_root_from_config_parent(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "lockerctl.toml").write_text('[community]\nid = "maple"\n')
        child = tmp_path / "a" / "b"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)
        settings = LockerSettings.from_cli()
        assert settings.site_root == tmp_path
        assert settings.community.id == "maple"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "site.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text("[storage]\npersist = false\n")
        settings = LockerSettings.from_cli(config_path=str(custom), site_root=tmp_path)
        assert settings.storage.persist is False
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "lockerctl.toml").write_text("[community\nid = ")
        with pytest.raises(InvalidConfigError, match="Invalid TOML"):
            LockerSettings.from_cli(site_root=tmp_path)


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "lockerctl.toml").write_text("[storage]\npersist = true\n")
        monkeypatch.setenv("LOCKERCTL_STORAGE__PERSIST", "false")
        settings = LockerSettings.from_cli(site_root=tmp_path)
        assert settings.storage.persist is False

    def test_cli_flags_override_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOCKERCTL_QUIET", "true")
        settings = LockerSettings.from_cli(site_root=tmp_path, quiet=False, verbose=True)
        assert settings.quiet is False
        assert settings.verbose is True
