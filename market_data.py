# market_data.py
# ดึงราคาปิดล่าสุดจาก yfinance (ตัวช่วยตอนกรอกฟอร์ม, ราคาที่ผู้ใช้กรอกยังเป็นหลัก)
import logging
from typing import Optional

import streamlit as st
import yfinance as yf

logger = logging.getLogger(__name__)

THAI_MARKET_SUFFIX = ".BK"
PRICE_CACHE_SECONDS = 600


def yahoo_symbol(ticker: str, currency: str = "THB") -> str:
    """หุ้นไทยบน Yahoo ต้องมี .BK ต่อท้าย (เช่น PTT → PTT.BK)"""
    sym = (ticker or "").strip().upper()
    if currency == "THB" and sym and "." not in sym:
        sym += THAI_MARKET_SUFFIX
    return sym


def fetch_last_price(ticker: str, currency: str = "THB") -> Optional[float]:
    sym = yahoo_symbol(ticker, currency)
    if not sym:
        return None
    try:
        hist = yf.Ticker(sym).history(period="5d")
    except Exception as e:
        # yfinance โยน error ได้หลายแบบ (network, JSON, rate limit)
        logger.warning("Price lookup failed for %s: %s", sym, e)
        return None
    if hist is None or hist.empty or "Close" not in hist.columns:
        logger.info("No recent price for %s", sym)
        return None
    close = hist["Close"].dropna()
    if close.empty:
        return None
    return float(close.iloc[-1])


@st.cache_data(ttl=PRICE_CACHE_SECONDS, show_spinner=False)
def cached_last_price(ticker: str, currency: str = "THB") -> Optional[float]:
    """ใช้ในหน้า UI: กดอัปเดตซ้ำภายใน 10 นาทีไม่ยิง Yahoo ใหม่"""
    return fetch_last_price(ticker, currency)
