# portfolio_calc.py
# ================== คำนวณมูลค่า/กำไรขาดทุน/สัดส่วนพอร์ต ======================
# ทุกตัวเลขสรุปแปลงเป็น THB ก่อนรวม (USD ใช้อัตราคงที่จาก config)

import math
from typing import Dict, List, Optional

import pandas as pd

import config
from portfolio_types import ASSET_TYPE_LABELS, INVESTMENT_TYPE_LABELS

USD_THB_RATE = config.USD_THB_RATE

SORT_KEYS = ("name", "amount", "returns")

# ------------------------- Currency -------------------------
def to_thb(amount: float, currency: str = "THB", rate: Optional[float] = None) -> float:
    if currency == "THB":
        return float(amount)
    if currency == "USD":
        return float(amount) * (USD_THB_RATE if rate is None else rate)
    raise ValueError(f"Unsupported currency: {currency}")

def holding_market_value(h: dict) -> float:
    return h["shares"] * to_thb(h["current_price"], h.get("current_price_currency") or "THB")

def holding_cost(h: dict) -> float:
    return h["shares"] * to_thb(h["avg_cost"], h.get("avg_cost_currency") or "THB")

# ------------------------- Stats ----------------------------
def _ratio(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0

def portfolio_stats(holdings: List[dict]) -> dict:
    """
    สรุปพอร์ต (หน่วย THB):
      holdings_count, total_value, total_cost,
      gain_loss = value - cost,
      gain_loss_percent = gain_loss / cost (cost = 0 → 0),
      type_breakdown = {core: {value, percent}, satellite: {value, percent}}
    """
    total_value = 0.0
    total_cost = 0.0
    by_type = {key: 0.0 for key in INVESTMENT_TYPE_LABELS}
    for h in holdings:
        mv = holding_market_value(h)
        total_value += mv
        total_cost += holding_cost(h)
        inv_type = h.get("investment_type") or "core"
        by_type[inv_type] = by_type.get(inv_type, 0.0) + mv

    gain_loss = total_value - total_cost
    return {
        "holdings_count": len(holdings),
        "total_value": total_value,
        "total_cost": total_cost,
        "gain_loss": gain_loss,
        "gain_loss_percent": _ratio(gain_loss, total_cost),
        "type_breakdown": {
            key: {"value": value, "percent": _ratio(value, total_value)}
            for key, value in by_type.items()
        },
    }

def get_portfolio_stats(all_holdings: List[dict], portfolio_id: str) -> dict:
    return portfolio_stats([h for h in all_holdings if h.get("portfolio_id") == portfolio_id])

def stats_by_portfolio(portfolios: List[dict], all_holdings: List[dict]) -> Dict[str, dict]:
    return {p["id"]: get_portfolio_stats(all_holdings, p["id"]) for p in portfolios}

# ------------------------- Sorting --------------------------
def sort_portfolios(portfolios: List[dict], stats: Dict[str, dict],
                    key: str = "name", direction: str = "asc") -> List[dict]:
    """เรียงพอร์ตตามชื่อ / มูลค่ารวม / % ผลตอบแทน (stable sort)"""
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {key}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction: {direction}")

    if key == "name":
        sort_key = lambda p: p["name"].casefold()
    elif key == "amount":
        sort_key = lambda p: stats[p["id"]]["total_value"]
    else:
        sort_key = lambda p: stats[p["id"]]["gain_loss_percent"]
    return sorted(portfolios, key=sort_key, reverse=(direction == "desc"))

# ------------------------- Frames (ตาราง/กราฟ) -------------
def allocation_frame(holdings: List[dict], by: str = "asset_type") -> pd.DataFrame:
    """
    คืน DataFrame คอลัมน์ ['Group', 'MarketValue', 'Allocation']
    by: 'asset_type' | 'investment_type' | 'holding'
    Allocation รวมกันได้ 1 เมื่อมูลค่ารวม > 0 (ไม่งั้นเป็น 0 ทั้งหมด)
    """
    if by == "asset_type":
        group_of = lambda h: ASSET_TYPE_LABELS.get(h["asset_type"], h["asset_type"])
    elif by == "investment_type":
        group_of = lambda h: INVESTMENT_TYPE_LABELS.get(h.get("investment_type") or "core")
    elif by == "holding":
        group_of = lambda h: h.get("ticker") or h["name"]
    else:
        raise ValueError(f"Unknown allocation grouping: {by}")

    rows = [{"Group": group_of(h), "MarketValue": holding_market_value(h)} for h in holdings]
    if not rows:
        return pd.DataFrame(columns=["Group", "MarketValue", "Allocation"])

    df = pd.DataFrame(rows).groupby("Group", as_index=False, sort=False)["MarketValue"].sum()
    total = float(df["MarketValue"].sum())
    df["Allocation"] = df["MarketValue"] / total if total > 0 else 0.0
    return df.sort_values("MarketValue", ascending=False, kind="stable").reset_index(drop=True)

def holdings_frame(holdings: List[dict]) -> pd.DataFrame:
    """ตารางแสดงผลหน้า holdings (ราคาแสดงตามสกุลเงินเดิม, มูลค่าเป็น THB)"""
    columns = ["Name", "Ticker", "Type", "Strategy", "Shares", "AvgCost", "CurrentPrice",
               "MarketValue", "GainLoss", "Return", "Allocation"]
    if not holdings:
        return pd.DataFrame(columns=columns)

    total_value = sum(holding_market_value(h) for h in holdings)
    rows = []
    for h in holdings:
        mv = holding_market_value(h)
        cost = holding_cost(h)
        rows.append({
            "Name": h["name"],
            "Ticker": h.get("ticker") or "",
            "Type": ASSET_TYPE_LABELS.get(h["asset_type"], h["asset_type"]),
            "Strategy": INVESTMENT_TYPE_LABELS.get(h.get("investment_type") or "core"),
            "Shares": h["shares"],
            "AvgCost": format_money(h["avg_cost"], h.get("avg_cost_currency") or "THB"),
            "CurrentPrice": format_money(h["current_price"], h.get("current_price_currency") or "THB"),
            "MarketValue": mv,
            "GainLoss": mv - cost,
            "Return": _ratio(mv - cost, cost),
            "Allocation": _ratio(mv, total_value),
        })
    return pd.DataFrame(rows, columns=columns)

# ------------------------- Formatting -----------------------
def _format_currency(amount: float, symbol: str) -> str:
    value = round(float(amount), 2)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"

def format_thb(amount: float) -> str:
    return _format_currency(amount, "฿")

def format_usd(amount: float) -> str:
    return _format_currency(amount, "$")

def format_money(amount: float, currency: str) -> str:
    if currency == "USD":
        return format_usd(amount)
    return format_thb(amount)

def format_percent(ratio: float) -> str:
    """+12.34% / -3.00% / 0.00% (ไม่ใส่เครื่องหมายเมื่อปัดแล้วเป็นศูนย์)"""
    pct = round(float(ratio) * 100, 2)
    if pct == 0 or math.isnan(pct):
        return "0.00%"
    return f"{pct:+.2f}%"

def format_allocation(ratio: float) -> str:
    pct = round(float(ratio) * 100, 2) + 0.0  # -0.0 → 0.0
    return f"{pct:.2f}%"
