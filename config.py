# config.py
# ================== ค่าตั้งค่าของแอพ (อ่านจาก .env / environment) ==================
import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_USD_THB_RATE = 34.0

# ว่าง = ปิดระบบบัญชีผู้ใช้ ใช้แค่ local store
DB_PATH = os.getenv("PORTFOLIO_DB_PATH", "portfolio.db").strip()
LOCAL_STORE_PATH = os.getenv("LOCAL_STORE_PATH", "local_storage.json").strip()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()


def _read_rate(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_USD_THB_RATE
    try:
        rate = float(raw)
    except ValueError:
        logger.warning("USD_THB_RATE=%r is not a number, using %.2f", raw, DEFAULT_USD_THB_RATE)
        return DEFAULT_USD_THB_RATE
    if rate <= 0:
        logger.warning("USD_THB_RATE must be positive, using %.2f", DEFAULT_USD_THB_RATE)
        return DEFAULT_USD_THB_RATE
    return rate


USD_THB_RATE = _read_rate(os.getenv("USD_THB_RATE"))


def is_backend_configured() -> bool:
    """มีฐานข้อมูลฝั่งบัญชีผู้ใช้หรือไม่ (ถ้าไม่มี หน้า UI จะซ่อนปุ่ม Sign in)"""
    return bool(DB_PATH)


def _log_level(name: str | None) -> int:
    """ชื่อ level ที่ไม่รู้จัก → INFO"""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging():
    logging.basicConfig(
        level=_log_level(LOG_LEVEL),
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
