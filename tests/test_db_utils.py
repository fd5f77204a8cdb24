import pytest

import db_utils
from tests.helpers import make_holding


# ------------------------- Auth -------------------------
def test_sign_up_and_sign_in(db):
    created = db.sign_up("  Alice@Example.com ", "secret123")

    assert created["email"] == "alice@example.com"
    assert db.sign_in("alice@example.com", "secret123") == created


def test_password_is_stored_hashed(db, user):
    with db.get_conn() as conn:
        stored = conn.execute("SELECT password_hash FROM users WHERE id = ?", (user["id"],)).fetchone()[0]

    assert stored != "secret123"
    assert db.check_password("secret123", stored)
    assert not db.check_password("wrong", stored)


def test_duplicate_email_rejected(db, user):
    with pytest.raises(db_utils.AuthError, match="already registered"):
        db.sign_up("ALICE@example.com", "another-pass")


@pytest.mark.parametrize("email,password", [
    ("not-an-email", "secret123"),
    ("", "secret123"),
    ("carol@example.com", "12345"),
    ("carol@example.com", "x" * 73),
    ("carol@example.com", "รหัสผ่าน" * 4),
])
def test_sign_up_validation(db, email, password):
    with pytest.raises(db_utils.AuthError):
        db.sign_up(email, password)


def test_sign_in_wrong_credentials(db, user):
    with pytest.raises(db_utils.AuthError, match="Invalid login credentials"):
        db.sign_in("alice@example.com", "wrong-password")
    with pytest.raises(db_utils.AuthError, match="Invalid login credentials"):
        db.sign_in("nobody@example.com", "secret123")


def test_overlong_password_message(db):
    with pytest.raises(db_utils.AuthError, match="at most 72 bytes"):
        db.sign_up("long@example.com", "x" * 80)


def test_sign_in_with_overlong_password_is_invalid(db, user):
    with pytest.raises(db_utils.AuthError, match="Invalid login credentials"):
        db.sign_in("alice@example.com", "x" * 80)


def test_check_password_rejects_non_bcrypt_hash():
    assert db_utils.check_password("secret", "plain-text") is False
    assert db_utils.check_password("secret", "") is False


# ------------------------- Portfolios -------------------------
def test_portfolio_crud(db, user):
    first = db.insert_portfolio(user["id"], "Retirement")
    second = db.insert_portfolio(user["id"], "Dividend")

    assert [p["name"] for p in db.read_portfolios(user["id"])] == ["Retirement", "Dividend"]

    assert db.update_portfolio(user["id"], first["id"], {"name": "Retirement 2050"}) is True
    assert db.read_portfolios(user["id"])[0]["name"] == "Retirement 2050"

    assert db.delete_portfolio(user["id"], second["id"]) is True
    assert db.read_portfolios(user["id"]) == [{"id": first["id"], "name": "Retirement 2050"}]


def test_update_portfolio_stamps_updated_at(db, user):
    p = db.insert_portfolio(user["id"], "Retirement")
    with db.get_conn() as conn:
        before = conn.execute("SELECT updated_at FROM portfolios WHERE id = ?", (p["id"],)).fetchone()[0]

    db.update_portfolio(user["id"], p["id"], {"name": "Renamed"})

    with db.get_conn() as conn:
        after = conn.execute("SELECT updated_at FROM portfolios WHERE id = ?", (p["id"],)).fetchone()[0]
    assert after >= before


def test_portfolios_are_scoped_to_owner(db, user, other_user):
    mine = db.insert_portfolio(user["id"], "Mine")

    assert db.read_portfolios(other_user["id"]) == []
    assert db.update_portfolio(other_user["id"], mine["id"], {"name": "Stolen"}) is False
    assert db.delete_portfolio(other_user["id"], mine["id"]) is False
    assert db.read_portfolios(user["id"])[0]["name"] == "Mine"


def test_delete_portfolio_cascades_holdings(db, user):
    p = db.insert_portfolio(user["id"], "Retirement")
    db.insert_holding(user["id"], p["id"], make_holding())

    assert db.delete_portfolio(user["id"], p["id"]) is True
    with db.get_conn() as conn:
        assert conn.execute("SELECT COUNT(*) FROM holdings").fetchone()[0] == 0


# ------------------------- Holdings -------------------------
def test_holding_crud(db, user):
    p = db.insert_portfolio(user["id"], "Retirement")

    created = db.insert_holding(user["id"], p["id"], make_holding(
        current_price=10.5, current_price_currency="USD",
    ))

    assert created["portfolio_id"] == p["id"]
    assert created["ticker"] == "BBL"
    assert created["current_price_currency"] == "USD"
    assert isinstance(created["shares"], float)
    assert db.read_holdings(user["id"], p["id"]) == [created]

    assert db.update_holding(user["id"], created["id"], {"shares": 150.0, "unknown": "x"}) is True
    assert db.read_holdings(user["id"])[0]["shares"] == 150.0

    assert db.delete_holding(user["id"], created["id"]) is True
    assert db.read_holdings(user["id"]) == []


def test_read_holdings_filters_by_portfolio(db, user):
    a = db.insert_portfolio(user["id"], "A")
    b = db.insert_portfolio(user["id"], "B")
    db.insert_holding(user["id"], a["id"], make_holding(name="In A"))
    db.insert_holding(user["id"], b["id"], make_holding(name="In B"))

    assert [h["name"] for h in db.read_holdings(user["id"], a["id"])] == ["In A"]
    assert [h["name"] for h in db.read_holdings(user["id"])] == ["In A", "In B"]


def test_insert_holding_into_foreign_portfolio_is_refused(db, user, other_user):
    p = db.insert_portfolio(user["id"], "Mine")

    assert db.insert_holding(other_user["id"], p["id"], make_holding()) is None
    assert db.read_holdings(user["id"]) == []


def test_holdings_are_scoped_to_owner(db, user, other_user):
    p = db.insert_portfolio(user["id"], "Mine")
    h = db.insert_holding(user["id"], p["id"], make_holding())

    assert db.read_holdings(other_user["id"]) == []
    assert db.update_holding(other_user["id"], h["id"], {"shares": 0.0}) is False
    assert db.delete_holding(other_user["id"], h["id"]) is False
    assert db.read_holdings(user["id"])[0]["shares"] == 100.0


def test_missing_currency_columns_map_to_thb(db, user):
    p = db.insert_portfolio(user["id"], "Mine")
    h = db.insert_holding(user["id"], p["id"], make_holding())
    with db.get_conn() as conn:
        conn.execute(
            "UPDATE holdings SET avg_cost_currency = NULL, current_price_currency = NULL WHERE id = ?",
            (h["id"],),
        )

    row = db.read_holdings(user["id"])[0]
    assert row["avg_cost_currency"] == "THB"
    assert row["current_price_currency"] == "THB"


def test_check_constraint_failure_is_logged_not_raised(db, user, caplog):
    p = db.insert_portfolio(user["id"], "Mine")

    with caplog.at_level("ERROR", logger="db_utils"):
        assert db.insert_holding(user["id"], p["id"], make_holding(shares=-1)) is None

    assert "Failed to add holding" in caplog.text


# ------------------------- Error paths -------------------------
def test_query_errors_return_empty(tmp_path, monkeypatch, caplog):
    # ไฟล์ DB ว่าง ไม่มีตาราง → ทุก query พัง
    monkeypatch.setattr(db_utils, "DB_PATH", str(tmp_path / "empty.db"))

    with caplog.at_level("ERROR", logger="db_utils"):
        assert db_utils.read_portfolios(1) == []
        assert db_utils.read_holdings(1) == []
        assert db_utils.insert_portfolio(1, "X") is None
        assert db_utils.update_portfolio(1, "p", {"name": "Y"}) is False
        assert db_utils.delete_portfolio(1, "p") is False
        assert db_utils.update_holding(1, "h", {"shares": 1.0}) is False
        assert db_utils.delete_holding(1, "h") is False

    assert "Failed to load portfolios" in caplog.text
    assert "Failed to load holdings" in caplog.text


def test_sign_in_database_error_becomes_auth_error(tmp_path, monkeypatch):
    monkeypatch.setattr(db_utils, "DB_PATH", str(tmp_path / "empty.db"))

    with pytest.raises(db_utils.AuthError, match="try again later"):
        db_utils.sign_in("alice@example.com", "secret123")


def test_init_db_is_idempotent(db):
    db.init_db()
    db.init_db()
    with db.get_conn() as conn:
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"users", "portfolios", "holdings"} <= tables
