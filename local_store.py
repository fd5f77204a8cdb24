# local_store.py
# ================== ที่เก็บข้อมูลฝั่งเครื่อง (ใช้ตอนไม่ได้ล็อกอิน) ======================
# ไฟล์ JSON หนึ่งไฟล์ ทำหน้าที่เป็น key/value store แบบ localStorage
#   - key มีเลขเวอร์ชัน เปลี่ยน schema แล้วข้อมูลเก่าไม่พัง
#   - อ่าน/เขียนพลาด (ไฟล์หาย, JSON เสีย, ดิสก์เต็ม) → log แล้วเงียบไว้
#   - schema v1 (พอร์ตเดียว) จะถูก migrate เป็น v2 (หลายพอร์ต) อัตโนมัติตอนโหลด

import json
import logging
import os
import tempfile
from typing import Any, List, Optional, Tuple

import config
from portfolio_types import clean_holding, new_id

logger = logging.getLogger(__name__)

STORAGE_PATH = config.LOCAL_STORE_PATH

LEGACY_HOLDINGS_KEY = "investing-list-holdings-v1"
PORTFOLIOS_KEY = "investing-list-portfolios-v2"
HOLDINGS_KEY = "investing-list-holdings-v2"

DEFAULT_PORTFOLIO_NAME = "My Portfolio"

# ------------------------- key/value พื้นฐาน -------------------------
def _read_all() -> dict:
    if not STORAGE_PATH or not os.path.exists(STORAGE_PATH):
        return {}
    try:
        with open(STORAGE_PATH, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Local store unreadable (%s): %s", STORAGE_PATH, e)
        return {}
    return data if isinstance(data, dict) else {}

def _write_all(data: dict) -> bool:
    """เขียนลงไฟล์ชั่วคราวก่อนแล้วค่อย os.replace ทับ เขียนพลาดไฟล์เดิมยังอยู่ครบ"""
    if not STORAGE_PATH:
        return False
    folder = os.path.dirname(os.path.abspath(STORAGE_PATH))
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=folder, suffix=".tmp", delete=False
        ) as f:
            tmp_path = f.name
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, STORAGE_PATH)
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Local store write failed (%s): %s", STORAGE_PATH, e)
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        return False
    return True

def get_item(key: str) -> Optional[str]:
    """คืนค่าเป็น string (เหมือน localStorage.getItem) หรือ None ถ้าไม่มี"""
    value = _read_all().get(key)
    return value if isinstance(value, str) else None

def set_item(key: str, value: str) -> bool:
    data = _read_all()
    data[key] = value
    return _write_all(data)

def remove_item(key: str) -> bool:
    data = _read_all()
    if key not in data:
        return True
    del data[key]
    return _write_all(data)

def _load_list(key: str) -> List[dict]:
    raw = get_item(key)
    if not raw:
        return []
    try:
        parsed: Any = json.loads(raw)
    except ValueError:
        logger.warning("Local store key %s holds corrupt JSON, ignoring", key)
        return []
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, dict)]

def _save_list(key: str, items: List[dict]) -> bool:
    try:
        raw = json.dumps(items, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.warning("Cannot serialize %s: %s", key, e)
        return False
    return set_item(key, raw)

# ------------------------- Migration v1 → v2 -------------------------
def _upgrade_legacy_holding(legacy: dict, portfolio_id: str) -> dict:
    """v1 → v2: ใส่ค่า default ที่ v1 ไม่มี แล้วผ่าน clean_holding (ไม่ผ่าน → ValueError)"""
    cleaned = clean_holding({
        "name": legacy.get("name"),
        "ticker": legacy.get("ticker"),
        "asset_type": legacy.get("asset_type") or "stock",
        "investment_type": "core",
        "shares": legacy.get("shares") or 0,
        "avg_cost": legacy.get("avg_cost") or 0,
        "avg_cost_currency": "THB",
        "current_price": legacy.get("current_price") or 0,
        "current_price_currency": "THB",
    })
    return {"id": legacy.get("id") or new_id(), "portfolio_id": portfolio_id, **cleaned}

def _upgrade_legacy_holdings(legacy: List[dict], portfolio_id: str) -> Tuple[List[dict], List[dict]]:
    """คืน (แถวที่ย้ายได้, แถวที่ไม่ผ่านการตรวจ)"""
    upgraded, rejected = [], []
    for row in legacy:
        try:
            upgraded.append(_upgrade_legacy_holding(row, portfolio_id))
        except ValueError as e:
            logger.warning("Skipping legacy holding %r: %s", row.get("id") or row.get("name"), e)
            rejected.append(row)
    return upgraded, rejected

def migrate_legacy_storage() -> bool:
    """
    ย้ายข้อมูล schema v1 (holdings ลิสต์เดียว ราคาเป็น THB ทั้งหมด) → v2
      1) มี key พอร์ต v2 แล้ว → ไม่ทำอะไร
      2) ไม่มีข้อมูล v1 / เสีย / ไม่ใช่ list → ไม่ทำอะไร (ลบเฉพาะ key v1 ที่เป็น list ว่าง)
      3) สร้างพอร์ต 'My Portfolio' แล้วผูก holdings เดิมที่ผ่านการตรวจเข้าไป
      4) บันทึกพอร์ต → holdings → ลบ key v1 (แถวที่ไม่ผ่านเก็บไว้ใน key v1 ต่อ)
    เรียกซ้ำได้ (idempotent) คืน True เฉพาะครั้งที่ migrate จริง
    """
    if get_item(PORTFOLIOS_KEY) is not None:
        return False

    legacy_raw = get_item(LEGACY_HOLDINGS_KEY)
    if legacy_raw is None:
        return False

    try:
        legacy: Any = json.loads(legacy_raw)
    except ValueError:
        logger.warning("Legacy holdings are corrupt JSON, leaving them untouched")
        return False
    if not isinstance(legacy, list):
        logger.warning("Legacy holdings are not a list, leaving them untouched")
        return False
    if not legacy:
        remove_item(LEGACY_HOLDINGS_KEY)
        return False

    portfolio = {"id": new_id(), "name": DEFAULT_PORTFOLIO_NAME}
    rows = [row for row in legacy if isinstance(row, dict)]
    holdings, rejected = _upgrade_legacy_holdings(rows, portfolio["id"])
    rejected += [row for row in legacy if not isinstance(row, dict)]
    if not holdings:
        logger.warning("No legacy holding passed validation, nothing migrated")
        return False

    if not _save_list(PORTFOLIOS_KEY, [portfolio]):
        return False
    if not _save_list(HOLDINGS_KEY, holdings):
        # ถอยกลับ ไม่ให้ค้างครึ่งทาง
        remove_item(PORTFOLIOS_KEY)
        return False
    if rejected:
        _save_list(LEGACY_HOLDINGS_KEY, rejected)
        logger.warning("Kept %d invalid legacy holdings under %s", len(rejected), LEGACY_HOLDINGS_KEY)
    else:
        remove_item(LEGACY_HOLDINGS_KEY)
    logger.info("Migrated %d legacy holdings into '%s'", len(holdings), DEFAULT_PORTFOLIO_NAME)
    return True

# ------------------------- Portfolios / Holdings -------------------------
def load_portfolios() -> List[dict]:
    migrate_legacy_storage()
    return _load_list(PORTFOLIOS_KEY)

def save_portfolios(portfolios: List[dict]) -> bool:
    return _save_list(PORTFOLIOS_KEY, portfolios)

def load_holdings() -> List[dict]:
    migrate_legacy_storage()
    return _load_list(HOLDINGS_KEY)

def save_holdings(holdings: List[dict]) -> bool:
    return _save_list(HOLDINGS_KEY, holdings)
