# db_utils.py
# ================== ฐานข้อมูลฝั่งบัญชีผู้ใช้ (SQLite) ======================
# ใช้เมื่อผู้ใช้ล็อกอินแล้ว:
#   - ตาราง users (email + bcrypt hash)
#   - ตาราง portfolios / holdings ผูกกับเจ้าของเสมอ (ทุก query กรองด้วย user_id)
#   - query พลาด → log แล้วคืนค่าว่าง (list ว่าง / None / False)

import logging
import re
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

import bcrypt

import config
from portfolio_types import HOLDING_FIELDS

logger = logging.getLogger(__name__)

DB_PATH = config.DB_PATH

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt รับได้ไม่เกินนี้
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
  id            INTEGER PRIMARY KEY,
  email         TEXT NOT NULL UNIQUE,
  password_hash TEXT NOT NULL,
  created_at    TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS portfolios (
  id         TEXT PRIMARY KEY,
  user_id    INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  name       TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS holdings (
  id                     TEXT PRIMARY KEY,
  portfolio_id           TEXT NOT NULL REFERENCES portfolios(id) ON DELETE CASCADE,
  name                   TEXT NOT NULL,
  ticker                 TEXT,
  asset_type             TEXT NOT NULL CHECK (asset_type IN ('stock','etf','mutual_fund','bond')),
  investment_type        TEXT NOT NULL DEFAULT 'core' CHECK (investment_type IN ('core','satellite')),
  shares                 REAL NOT NULL CHECK (shares >= 0),
  avg_cost               REAL NOT NULL CHECK (avg_cost >= 0),
  avg_cost_currency      TEXT DEFAULT 'THB' CHECK (avg_cost_currency IN ('THB','USD')),
  current_price          REAL NOT NULL CHECK (current_price >= 0),
  current_price_currency TEXT DEFAULT 'THB' CHECK (current_price_currency IN ('THB','USD')),
  created_at             TEXT NOT NULL,
  updated_at             TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_portfolios_by_user   ON portfolios(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_holdings_by_portfolio ON holdings(portfolio_id, created_at);
"""

_OWNED_PORTFOLIOS = "SELECT id FROM portfolios WHERE user_id = ?"


class AuthError(ValueError):
    """สมัคร/ล็อกอินไม่สำเร็จ (ข้อความแสดงให้ผู้ใช้เห็นได้ตรง ๆ)"""


# ------------------------- Core connection -------------------------
@contextmanager
def get_conn():
    conn = sqlite3.connect(DB_PATH, isolation_level=None)  # autocommit
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    try:
        yield conn
    finally:
        conn.close()

def init_db():
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")

def _new_row_id() -> str:
    return uuid.uuid4().hex

# ------------------------- Row mappers -----------------------------
def _row_to_portfolio(row: sqlite3.Row) -> dict:
    return {"id": row["id"], "name": row["name"]}

def _row_to_holding(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "portfolio_id": row["portfolio_id"],
        "name": row["name"],
        "ticker": row["ticker"] or None,
        "asset_type": row["asset_type"],
        "investment_type": row["investment_type"] or "core",
        "shares": float(row["shares"]),
        "avg_cost": float(row["avg_cost"]),
        "avg_cost_currency": row["avg_cost_currency"] or "THB",
        "current_price": float(row["current_price"]),
        "current_price_currency": row["current_price_currency"] or "THB",
    }

# ------------------------- Auth ------------------------------------
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def check_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # hash ในตารางไม่ใช่รูปแบบ bcrypt
        return False

def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def sign_up(email: str, password: str) -> dict:
    """สมัครสมาชิก คืน {id, email}; ผิดเงื่อนไข/อีเมลซ้ำ → AuthError"""
    email = _normalize_email(email)
    if not _EMAIL_PATTERN.match(email):
        raise AuthError("Please enter a valid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise AuthError(f"Password should be at most {MAX_PASSWORD_BYTES} bytes")

    pw_hash = hash_password(password)
    try:
        with get_conn() as conn:
            cur = conn.execute(
                "INSERT INTO users(email, password_hash) VALUES (?, ?)",
                (email, pw_hash),
            )
            user_id = cur.lastrowid
    except sqlite3.IntegrityError:
        raise AuthError("User already registered") from None
    except sqlite3.Error as e:
        logger.error("Failed to sign up: %s", e)
        raise AuthError("Sign up failed, please try again later") from e
    logger.info("New account created: %s", email)
    return {"id": int(user_id), "email": email}

def sign_in(email: str, password: str) -> dict:
    email = _normalize_email(email)
    try:
        with get_conn() as conn:
            row = conn.execute(
                "SELECT id, email, password_hash FROM users WHERE email = ?", (email,)
            ).fetchone()
    except sqlite3.Error as e:
        logger.error("Failed to sign in: %s", e)
        raise AuthError("Sign in failed, please try again later") from e
    if row is None or not check_password(password or "", row["password_hash"]):
        raise AuthError("Invalid login credentials")
    return {"id": int(row["id"]), "email": row["email"]}

# ------------------------- Portfolios ------------------------------
def read_portfolios(user_id: int) -> List[dict]:
    try:
        with get_conn() as conn:
            rows = conn.execute(
                "SELECT id, name FROM portfolios WHERE user_id = ? ORDER BY created_at, rowid",
                (user_id,),
            ).fetchall()
    except sqlite3.Error as e:
        logger.error("Failed to load portfolios: %s", e)
        return []
    return [_row_to_portfolio(r) for r in rows]

def insert_portfolio(user_id: int, name: str) -> Optional[dict]:
    row_id, now = _new_row_id(), _now()
    try:
        with get_conn() as conn:
            conn.execute(
                """
                INSERT INTO portfolios(id, user_id, name, created_at, updated_at)
                VALUES (?,?,?,?,?)
                """,
                (row_id, user_id, name, now, now),
            )
    except sqlite3.Error as e:
        logger.error("Failed to add portfolio: %s", e)
        return None
    return {"id": row_id, "name": name}

def update_portfolio(user_id: int, portfolio_id: str, updates: dict) -> bool:
    sets = {}
    if "name" in updates:
        sets["name"] = updates["name"]
    sets["updated_at"] = _now()
    assignments = ", ".join(f"{col} = ?" for col in sets)
    try:
        with get_conn() as conn:
            cur = conn.execute(
                f"UPDATE portfolios SET {assignments} WHERE id = ? AND user_id = ?",
                (*sets.values(), portfolio_id, user_id),
            )
    except sqlite3.Error as e:
        logger.error("Failed to update portfolio: %s", e)
        return False
    return cur.rowcount > 0

def delete_portfolio(user_id: int, portfolio_id: str) -> bool:
    """ลบพอร์ต: holdings ในพอร์ตถูกลบตาม (ON DELETE CASCADE)"""
    try:
        with get_conn() as conn:
            cur = conn.execute(
                "DELETE FROM portfolios WHERE id = ? AND user_id = ?",
                (portfolio_id, user_id),
            )
    except sqlite3.Error as e:
        logger.error("Failed to delete portfolio: %s", e)
        return False
    return cur.rowcount > 0

# ------------------------- Holdings --------------------------------
def read_holdings(user_id: int, portfolio_id: Optional[str] = None) -> List[dict]:
    q = f"""
        SELECT * FROM holdings
        WHERE portfolio_id IN ({_OWNED_PORTFOLIOS})
    """
    params: List = [user_id]
    if portfolio_id is not None:
        q += " AND portfolio_id = ?"
        params.append(portfolio_id)
    q += " ORDER BY created_at, rowid"
    try:
        with get_conn() as conn:
            rows = conn.execute(q, params).fetchall()
    except sqlite3.Error as e:
        logger.error("Failed to load holdings: %s", e)
        return []
    return [_row_to_holding(r) for r in rows]

def insert_holding(user_id: int, portfolio_id: str, holding: dict) -> Optional[dict]:
    """
    เพิ่ม holding ลงพอร์ตของ user คนนี้เท่านั้น
    คืน holding ที่บันทึกแล้ว (id ใหม่จากฝั่ง DB) หรือ None ถ้าไม่ใช่พอร์ตของเขา/DB error
    """
    row_id, now = _new_row_id(), _now()
    values = {col: holding.get(col) for col in HOLDING_FIELDS}
    values["investment_type"] = values["investment_type"] or "core"
    values["avg_cost_currency"] = values["avg_cost_currency"] or "THB"
    values["current_price_currency"] = values["current_price_currency"] or "THB"
    cols = ", ".join(values)
    marks = ",".join("?" for _ in values)
    try:
        with get_conn() as conn:
            owned = conn.execute(
                "SELECT 1 FROM portfolios WHERE id = ? AND user_id = ?",
                (portfolio_id, user_id),
            ).fetchone()
            if owned is None:
                logger.warning("Portfolio %s is not owned by user %s", portfolio_id, user_id)
                return None
            conn.execute(
                f"""
                INSERT INTO holdings(id, portfolio_id, {cols}, created_at, updated_at)
                VALUES (?,?,{marks},?,?)
                """,
                (row_id, portfolio_id, *values.values(), now, now),
            )
            row = conn.execute("SELECT * FROM holdings WHERE id = ?", (row_id,)).fetchone()
    except sqlite3.Error as e:
        logger.error("Failed to add holding: %s", e)
        return None
    return _row_to_holding(row)

def update_holding(user_id: int, holding_id: str, updates: dict) -> bool:
    sets = {col: updates[col] for col in HOLDING_FIELDS if col in updates}
    sets["updated_at"] = _now()
    assignments = ", ".join(f"{col} = ?" for col in sets)
    try:
        with get_conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE holdings SET {assignments}
                WHERE id = ? AND portfolio_id IN ({_OWNED_PORTFOLIOS})
                """,
                (*sets.values(), holding_id, user_id),
            )
    except sqlite3.Error as e:
        logger.error("Failed to update holding: %s", e)
        return False
    return cur.rowcount > 0

def delete_holding(user_id: int, holding_id: str) -> bool:
    try:
        with get_conn() as conn:
            cur = conn.execute(
                f"DELETE FROM holdings WHERE id = ? AND portfolio_id IN ({_OWNED_PORTFOLIOS})",
                (holding_id, user_id),
            )
    except sqlite3.Error as e:
        logger.error("Failed to delete holding: %s", e)
        return False
    return cur.rowcount > 0
