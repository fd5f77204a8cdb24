import pytest

import db_utils
import local_store


@pytest.fixture
def local_storage(tmp_path, monkeypatch):
    path = tmp_path / "local_storage.json"
    monkeypatch.setattr(local_store, "STORAGE_PATH", str(path))
    return path


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(db_utils, "DB_PATH", str(tmp_path / "portfolio.db"))
    db_utils.init_db()
    return db_utils


@pytest.fixture
def user(db):
    return db.sign_up("alice@example.com", "secret123")


@pytest.fixture
def other_user(db):
    return db.sign_up("bob@example.com", "hunter22")
