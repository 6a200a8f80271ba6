"""Tests for main.py -- the provisioning CLI.

Each test runs against its own SQLite file under tmp_path, the same way an
operator would run the commands against a real database.
"""

import json

import pytest

from auth.credentials import CredentialVerifier
from auth.models import HashedSecret, LegacySecret
from auth.store import AdminStore
from main import main


@pytest.fixture
def db_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'portal.db'}"
    assert main(["--db-url", url, "init-db"]) == 0
    return url


def _cli(db_url, *args):
    return main(["--db-url", db_url, *args])


def test_create_tenant_and_check_status(db_url, capsys):
    assert _cli(db_url, "create-tenant", "Ocean Breeze Spa", "--status", "pending") == 0
    capsys.readouterr()

    assert _cli(db_url, "check-status", "1") == 0
    status = json.loads(capsys.readouterr().out)
    assert status["status"] == "pending"
    assert status["canLogin"] is False
    assert status["allowedTabs"] == []


def test_set_status_moves_spa(db_url, capsys):
    _cli(db_url, "create-tenant", "Ocean Breeze Spa")
    assert _cli(db_url, "set-status", "1", "approved") == 0
    capsys.readouterr()

    _cli(db_url, "check-status", "1")
    assert json.loads(capsys.readouterr().out)["accessLevel"] == "full"


def test_set_status_unknown_spa(db_url):
    assert _cli(db_url, "set-status", "99", "approved") == 1


def test_check_status_unknown_spa(db_url, capsys):
    assert _cli(db_url, "check-status", "99") == 1
    assert "tenant_not_found" in capsys.readouterr().out


def test_create_admin_hashes_by_default(db_url):
    _cli(db_url, "create-tenant", "Ocean Breeze Spa", "--status", "approved")
    assert _cli(db_url, "create-admin", "owner", "--role", "admin_spa", "--spa-id", "1", "--password", "s3cret") == 0

    store = AdminStore(db_url)
    identity = store.get_active_by_login_name("owner")
    assert isinstance(identity.secret, HashedSecret)
    assert CredentialVerifier(store).verify("owner", "s3cret").tenant_id == 1
    store.close()


def test_create_admin_legacy_plaintext(db_url):
    _cli(db_url, "create-admin", "legacy", "--role", "admin_lsa", "--password", "plain", "--legacy-plaintext")
    store = AdminStore(db_url)
    assert isinstance(store.get_active_by_login_name("legacy").secret, LegacySecret)
    store.close()


def test_spa_role_requires_spa_id(db_url):
    assert _cli(db_url, "create-admin", "owner", "--role", "admin_spa", "--password", "s3cret") == 1


def test_duplicate_username_rejected(db_url):
    _cli(db_url, "create-admin", "lsa", "--role", "admin_lsa", "--password", "one")
    assert _cli(db_url, "create-admin", "lsa", "--role", "admin_lsa", "--password", "two") == 1


def test_hash_secret_prints_bcrypt(db_url, capsys):
    assert _cli(db_url, "hash-secret", "s3cret") == 0
    assert capsys.readouterr().out.strip().startswith("$2b$")
