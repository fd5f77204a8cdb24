import json

import pytest

import local_store
import portfolio_service as svc
from tests.helpers import make_holding


# ------------------------- Local (ไม่ได้ล็อกอิน) -------------------------
def test_local_portfolio_lifecycle(local_storage):
    created = svc.add_portfolio(None, "  Retirement  ")

    assert created["name"] == "Retirement"
    assert svc.load_portfolios(None) == [created]

    assert svc.rename_portfolio(None, created["id"], "Retirement 2050") is True
    assert svc.load_portfolios(None)[0]["name"] == "Retirement 2050"
    assert svc.rename_portfolio(None, "nope", "X") is False


def test_local_remove_portfolio_drops_its_holdings(local_storage):
    keep = svc.add_portfolio(None, "Keep")
    drop = svc.add_portfolio(None, "Drop")
    svc.add_holding(None, keep["id"], make_holding(name="Kept"))
    svc.add_holding(None, drop["id"], make_holding(name="Dropped"))

    assert svc.remove_portfolio(None, drop["id"]) is True

    assert [p["name"] for p in svc.load_portfolios(None)] == ["Keep"]
    assert [h["name"] for h in svc.load_holdings(None)] == ["Kept"]
    assert svc.remove_portfolio(None, drop["id"]) is False


def test_local_holding_lifecycle(local_storage):
    p = svc.add_portfolio(None, "Main")

    h = svc.add_holding(None, p["id"], make_holding(ticker=" scb "))

    assert h["portfolio_id"] == p["id"]
    assert h["ticker"] == "SCB"
    assert h["shares"] == 100.0
    assert svc.load_holdings(None, p["id"]) == [h]

    assert svc.update_holding(None, h["id"], {"current_price": 140, "bogus": 1}) is True
    updated = svc.load_holdings(None)[0]
    assert updated["current_price"] == 140.0
    assert "bogus" not in updated
    assert updated["name"] == "Bangkok Bank"

    assert svc.update_holding(None, "missing", {"shares": 1}) is False
    assert svc.remove_holding(None, h["id"]) is True
    assert svc.load_holdings(None) == []
    assert svc.remove_holding(None, h["id"]) is False


def test_local_add_holding_to_unknown_portfolio(local_storage):
    assert svc.add_holding(None, "ghost", make_holding()) is None
    assert svc.load_holdings(None) == []


def test_local_reads_migrate_legacy_data(local_storage):
    local_storage.write_text(json.dumps({
        local_store.LEGACY_HOLDINGS_KEY: json.dumps([
            {"id": "h1", "name": "PTT", "asset_type": "stock",
             "shares": 10, "avg_cost": 30, "current_price": 35},
        ]),
    }), encoding="utf-8")

    portfolios = svc.load_portfolios(None)

    assert [p["name"] for p in portfolios] == ["My Portfolio"]
    assert svc.load_holdings(None, portfolios[0]["id"])[0]["id"] == "h1"


# ------------------------- Validation -------------------------
@pytest.mark.parametrize("bad", [
    {"name": "   "},
    {"shares": -1},
    {"avg_cost": "abc"},
    {"current_price": float("inf")},
    {"asset_type": "crypto"},
    {"investment_type": "speculative"},
    {"current_price_currency": "EUR"},
])
def test_invalid_holding_is_rejected_before_saving(local_storage, bad):
    p = svc.add_portfolio(None, "Main")

    with pytest.raises(ValueError):
        svc.add_holding(None, p["id"], make_holding(**bad))
    assert svc.load_holdings(None) == []


def test_blank_portfolio_name_is_rejected(local_storage):
    with pytest.raises(ValueError):
        svc.add_portfolio(None, "   ")
    assert svc.load_portfolios(None) == []


# ------------------------- Remote (ล็อกอินแล้ว) -------------------------
def test_signed_in_user_uses_database(local_storage, db, user):
    p = svc.add_portfolio(user, "Cloud")
    h = svc.add_holding(user, p["id"], make_holding(current_price_currency="usd"))

    assert svc.load_portfolios(user) == [p]
    assert svc.load_holdings(user, p["id"]) == [h]
    assert h["current_price_currency"] == "USD"
    # local store ไม่ถูกแตะ
    assert svc.load_portfolios(None) == []
    assert not local_storage.exists()

    assert svc.update_holding(user, h["id"], {"shares": 5}) is True
    assert svc.load_holdings(user)[0]["shares"] == 5.0
    assert svc.rename_portfolio(user, p["id"], "Cloud 2") is True

    assert svc.remove_holding(user, h["id"]) is True
    assert svc.remove_portfolio(user, p["id"]) is True
    assert svc.load_portfolios(user) == []


def test_anonymous_and_signed_in_data_are_separate(local_storage, db, user):
    svc.add_portfolio(None, "Local only")
    svc.add_portfolio(user, "Cloud only")

    assert [p["name"] for p in svc.load_portfolios(None)] == ["Local only"]
    assert [p["name"] for p in svc.load_portfolios(user)] == ["Cloud only"]
