"""Tests for the format_result dispatcher and OutputSettings."""

import json

from lockerctl.output.formatters import OutputSettings, format_result
from lockerctl.services.result import ServiceError, ServiceResult


def _ok(op: str = "counts", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "store", msg: str = "fail") -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code="NO_LOCKER_AVAILABLE", message=msg),
    )


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert (s.json_output, s.quiet, s.verbose) == (False, False, False)


class TestFormatResult:
    def test_json_mode(self) -> None:
        output = format_result(_ok(system_id=1, total=4), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "counts"
        assert data["data"]["total"] == 4

    def test_json_shorthand(self) -> None:
        data = json.loads(format_result(_err(msg="Full"), json_output=True))
        assert data["ok"] is False
        assert data["error"] == {"code": "NO_LOCKER_AVAILABLE", "message": "Full", "detail": {}}

    def test_settings_take_precedence(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(), json_output=True)
        assert not output.lstrip().startswith("{")

    def test_quiet_mode(self) -> None:
        result = _ok("store", custody_id="PKG-0001", locker_id=3, otp="482913")
        assert format_result(result, settings=OutputSettings(quiet=True)) == "PKG-0001 3 482913"

    def test_rich_mode(self) -> None:
        output = format_result(_err(msg="No free small locker"))
        assert "ERROR" in output
        assert "No free small locker" in output
