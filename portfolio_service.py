# portfolio_service.py
# ================== เลือกที่เก็บข้อมูลตามสถานะล็อกอิน ======================
#   ล็อกอินแล้ว  → db_utils (ฐานข้อมูล, แยกตามเจ้าของ)
#   ไม่ได้ล็อกอิน → local_store (ไฟล์ JSON ในเครื่อง)
# ตรวจ input ด้วย portfolio_types ก่อนแตะที่เก็บเสมอ (ผิด → ValueError)

import logging
from typing import List, Optional

import db_utils
import local_store
from portfolio_types import clean_holding, clean_portfolio_name, new_id

logger = logging.getLogger(__name__)

# ------------------------- Portfolios ------------------------------
def load_portfolios(user: Optional[dict]) -> List[dict]:
    if user:
        return db_utils.read_portfolios(user["id"])
    return local_store.load_portfolios()

def add_portfolio(user: Optional[dict], name: str) -> Optional[dict]:
    name = clean_portfolio_name(name)
    if user:
        return db_utils.insert_portfolio(user["id"], name)

    portfolio = {"id": new_id(), "name": name}
    portfolios = local_store.load_portfolios()
    portfolios.append(portfolio)
    local_store.save_portfolios(portfolios)
    return portfolio

def rename_portfolio(user: Optional[dict], portfolio_id: str, name: str) -> bool:
    name = clean_portfolio_name(name)
    if user:
        return db_utils.update_portfolio(user["id"], portfolio_id, {"name": name})

    portfolios = local_store.load_portfolios()
    found = False
    for p in portfolios:
        if p.get("id") == portfolio_id:
            p["name"] = name
            found = True
    if found:
        local_store.save_portfolios(portfolios)
    return found

def remove_portfolio(user: Optional[dict], portfolio_id: str) -> bool:
    """ลบพอร์ตพร้อม holdings ทั้งหมดในพอร์ตนั้น"""
    if user:
        return db_utils.delete_portfolio(user["id"], portfolio_id)

    portfolios = local_store.load_portfolios()
    remaining = [p for p in portfolios if p.get("id") != portfolio_id]
    if len(remaining) == len(portfolios):
        return False
    local_store.save_portfolios(remaining)
    holdings = local_store.load_holdings()
    local_store.save_holdings([h for h in holdings if h.get("portfolio_id") != portfolio_id])
    logger.info("Removed local portfolio %s", portfolio_id)
    return True

# ------------------------- Holdings --------------------------------
def load_holdings(user: Optional[dict], portfolio_id: Optional[str] = None) -> List[dict]:
    if user:
        return db_utils.read_holdings(user["id"], portfolio_id)
    holdings = local_store.load_holdings()
    if portfolio_id is None:
        return holdings
    return [h for h in holdings if h.get("portfolio_id") == portfolio_id]

def add_holding(user: Optional[dict], portfolio_id: str, data: dict) -> Optional[dict]:
    cleaned = clean_holding(data)
    if user:
        return db_utils.insert_holding(user["id"], portfolio_id, cleaned)

    if not any(p.get("id") == portfolio_id for p in local_store.load_portfolios()):
        logger.warning("Local portfolio %s not found, holding not added", portfolio_id)
        return None
    holding = {"id": new_id(), "portfolio_id": portfolio_id, **cleaned}
    holdings = local_store.load_holdings()
    holdings.append(holding)
    local_store.save_holdings(holdings)
    return holding

def update_holding(user: Optional[dict], holding_id: str, updates: dict) -> bool:
    cleaned = clean_holding(updates, partial=True)
    if user:
        return db_utils.update_holding(user["id"], holding_id, cleaned)

    holdings = local_store.load_holdings()
    found = False
    for i, h in enumerate(holdings):
        if h.get("id") == holding_id:
            holdings[i] = {**h, **cleaned}
            found = True
    if found:
        local_store.save_holdings(holdings)
    return found

def remove_holding(user: Optional[dict], holding_id: str) -> bool:
    if user:
        return db_utils.delete_holding(user["id"], holding_id)

    holdings = local_store.load_holdings()
    remaining = [h for h in holdings if h.get("id") != holding_id]
    if len(remaining) == len(holdings):
        return False
    local_store.save_holdings(remaining)
    return True
