# portfolio_types.py
# ================== ชนิดข้อมูล/ค่าคงที่ของพอร์ต + ตรวจสอบ input ==================
import math
import random
import string
import time
from typing import Optional

ASSET_TYPE_LABELS = {
    "stock": "Stock",
    "etf": "ETF",
    "mutual_fund": "Mutual Fund",
    "bond": "Bond / Fixed Income",
}

INVESTMENT_TYPE_LABELS = {
    "core": "Core",
    "satellite": "Satellite",
}

CURRENCIES = ("THB", "USD")

HOLDING_FIELDS = (
    "name", "ticker", "asset_type", "investment_type",
    "shares", "avg_cost", "avg_cost_currency",
    "current_price", "current_price_currency",
)

_NUMERIC_FIELDS = {
    "shares": "Shares / Units",
    "avg_cost": "Average Cost",
    "current_price": "Current Price",
}

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_id() -> str:
    """id ฝั่ง local: '<epoch ms>-<base36 7 ตัว>'"""
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{int(time.time() * 1000)}-{suffix}"


def _clean_text(label: str, value) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{label} must be text")
    return value.strip()


def clean_portfolio_name(name) -> str:
    cleaned = _clean_text("Portfolio name", name)
    if not cleaned:
        raise ValueError("Portfolio name is required")
    return cleaned


def _clean_number(field: str, value) -> float:
    label = _NUMERIC_FIELDS[field]
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number") from None
    if not math.isfinite(num):
        raise ValueError(f"{label} must be a finite number")
    if num < 0:
        raise ValueError(f"{label} must be zero or more")
    return num


def _clean_ticker(value) -> Optional[str]:
    ticker = _clean_text("Ticker", value).upper()
    return ticker or None


def clean_holding(data: dict, partial: bool = False) -> dict:
    """
    คืน dict ใหม่ที่ผ่านการ normalize แล้ว (ไม่แก้ dict เดิม)
    - partial=False: ฟิลด์บังคับต้องครบ, ฟิลด์เลือกได้ใส่ค่า default
    - partial=True : ตรวจเฉพาะ key ที่ส่งมา (ใช้ตอน update)
    key ที่ไม่รู้จักจะถูกทิ้ง
    """
    out = {}

    if not partial or "name" in data:
        name = _clean_text("Holding name", data.get("name"))
        if not name:
            raise ValueError("Holding name is required")
        out["name"] = name

    if not partial or "ticker" in data:
        out["ticker"] = _clean_ticker(data.get("ticker"))

    if not partial or "asset_type" in data:
        asset_type = data.get("asset_type", "stock")
        if not isinstance(asset_type, str) or asset_type not in ASSET_TYPE_LABELS:
            raise ValueError(f"Unknown asset type: {asset_type!r}")
        out["asset_type"] = asset_type

    if not partial or "investment_type" in data:
        inv_type = data.get("investment_type") or "core"
        if not isinstance(inv_type, str) or inv_type not in INVESTMENT_TYPE_LABELS:
            raise ValueError(f"Unknown investment type: {inv_type!r}")
        out["investment_type"] = inv_type

    for field in _NUMERIC_FIELDS:
        if not partial or field in data:
            if field not in data:
                raise ValueError(f"{_NUMERIC_FIELDS[field]} is required")
            out[field] = _clean_number(field, data[field])

    for field in ("avg_cost_currency", "current_price_currency"):
        if not partial or field in data:
            currency = str(data.get(field) or "THB").strip().upper()
            if currency not in CURRENCIES:
                raise ValueError(f"Unsupported currency: {currency}")
            out[field] = currency

    return out
