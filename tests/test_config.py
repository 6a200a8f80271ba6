"""Unit tests for core/config.py -- signing key policy and auth limits."""

import inspect

import pytest
from pydantic import ValidationError

from auth.store import AdminStore
from core.config import DEFAULT_DATABASE_URL, Settings
from tenants.store import TenantStore

GOOD_KEY = "x" * 32


def test_dev_mode_generates_a_key():
    settings = Settings(_env_file=None, debug=True, secret_key="")
    assert len(settings.secret_key) >= 32


def test_dev_mode_keys_differ_between_instances():
    one = Settings(_env_file=None, debug=True, secret_key="")
    two = Settings(_env_file=None, debug=True, secret_key="")
    assert one.secret_key != two.secret_key


def test_production_requires_a_key():
    with pytest.raises(ValidationError, match="SECRET_KEY must be set"):
        Settings(_env_file=None, debug=False, secret_key="")


def test_short_key_rejected():
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(_env_file=None, debug=False, secret_key="too-short")


def test_non_positive_token_lifetime_rejected():
    with pytest.raises(ValidationError, match="TOKEN_EXPIRE_SECONDS"):
        Settings(_env_file=None, debug=False, secret_key=GOOD_KEY, token_expire_seconds=0)


def test_defaults(monkeypatch):
    monkeypatch.delenv("LOGIN_RATE_LIMIT", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TOKEN_EXPIRE_SECONDS", raising=False)
    settings = Settings(_env_file=None, debug=False, secret_key=GOOD_KEY)
    assert settings.token_expire_seconds == 24 * 60 * 60
    assert settings.login_rate_limit == "10/minute"
    assert settings.database_url.startswith("sqlite:///")


@pytest.mark.parametrize("store_cls", [AdminStore, TenantStore])
def test_stores_default_to_the_configured_database(store_cls):
    default = inspect.signature(store_cls.__init__).parameters["db_url"].default
    assert default == DEFAULT_DATABASE_URL
