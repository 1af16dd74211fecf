"""Tests for the authorization gate and environment-driven settings."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sublinear.core.config import AppSettings, normalize_db_url
from sublinear.core.errors import UnauthorizedError
from sublinear.core.security import ensure_authorized, is_authorized


def _settings(**overrides):
    return AppSettings(_env_file=None, **overrides)


@pytest.mark.parametrize("header", [None, "", "   ", "anything", b"\xff\xfe"])
def test_gate_disabled_admits_everything(header):
    assert is_authorized(header, _settings(REQUIRE_AUTH=False)) is True


@pytest.mark.parametrize(
    "header, expected",
    [
        (None, False),
        ("", False),
        ("  \t ", False),
        (b"\xff\xfe", False),
        ("\xff\xfe", False),
        ("Bearer caf\xe9", False),
        ("Bearer tok\x00en", False),
        ("lin_api_whatever", True),
        (b"Bearer token", True),
    ],
)
def test_gate_without_key_requires_a_credential(header, expected):
    assert is_authorized(header, _settings(REQUIRE_AUTH=True)) is expected


@pytest.mark.parametrize(
    "header, expected",
    [
        ("sekret", True),
        ("Bearer sekret", True),
        ("  Bearer sekret  ", True),
        ("bearer sekret", False),
        ("Bearer wrong", False),
        ("sekret2", False),
        (None, False),
    ],
)
def test_gate_with_key_compares_exactly(header, expected):
    assert is_authorized(header, _settings(REQUIRE_AUTH=True, API_KEY="sekret")) is expected


class _Ctx:
    def __init__(self, authorized):
        self.authorized = authorized


def test_ensure_authorized():
    ensure_authorized(_Ctx(True))
    with pytest.raises(UnauthorizedError) as excinfo:
        ensure_authorized(_Ctx(False))
    assert excinfo.value.message == "Unauthorized"
    assert excinfo.value.code == "unauthorized"


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, "sqlite:///sublinear.db"),
        ("", "sqlite:///sublinear.db"),
        ("local.db", "sqlite:///local.db"),
        ("file:/tmp/dev.db", "sqlite:////tmp/dev.db"),
        ("sqlite://", "sqlite://"),
        ("postgresql://u@h/db", "postgresql://u@h/db"),
    ],
)
def test_normalize_db_url(raw, expected):
    assert normalize_db_url(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), ("true", True), ("TRUE", True), ("yes", True), ("YES", True), ("0", False), ("no", False), ("True", False)],
)
def test_require_auth_parsing(raw, expected):
    assert _settings(REQUIRE_AUTH=raw).REQUIRE_AUTH is expected


def test_defaults_and_derived_values(monkeypatch):
    for name in ("SUBLINEAR_PORT", "PORT", "SUBLINEAR_BASE_URL", "BASE_URL", "SUBLINEAR_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)
    settings = _settings()
    assert settings.PORT == 8787
    assert settings.BASE_URL == "http://localhost:8787"
    assert settings.API_KEY is None

    assert _settings(PORT=9000).BASE_URL == "http://localhost:9000"
    assert _settings(API_KEY="").API_KEY is None
    assert _settings(SEED_TEAM_KEY="").SEED_TEAM_KEY == "SYN"


def test_environment_variable_names(monkeypatch):
    monkeypatch.setenv("SUBLINEAR_PORT", "9123")
    monkeypatch.setenv("SUBLINEAR_REQUIRE_AUTH", "no")
    monkeypatch.setenv("SUBLINEAR_API_KEY", "k")
    monkeypatch.setenv("TURSO_DATABASE_URL", "file:dev.db")
    settings = _settings()
    assert settings.PORT == 9123
    assert settings.REQUIRE_AUTH is False
    assert settings.API_KEY == "k"
    assert settings.DB_URL == "sqlite:///dev.db"
