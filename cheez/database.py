"""
Database helpers — wraps SQLite via raw SQL.

One shared connection in autocommit mode; multi-statement writes go through
``transaction()`` so they commit or roll back as a unit.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager

from cheez import config

logger = logging.getLogger(__name__)

_conn = None
_lock = threading.RLock()


def get_connection():
    """Return the shared DB connection, opening it on first use."""
    global _conn
    with _lock:
        if _conn is None:
            db_path = config.DATABASE_URL.replace("sqlite:///", "")
            _conn = sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)
            _conn.row_factory = sqlite3.Row
            _conn.execute("PRAGMA foreign_keys = ON")
            _init_tables(_conn)
            logger.info("Opened database %s", db_path)
        return _conn


def close_connection():
    global _conn
    with _lock:
        if _conn is not None:
            _conn.close()
            _conn = None


def init_db():
    get_connection()


def _init_tables(conn):
    """Create tables if they don't exist yet."""
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            is_admin INTEGER NOT NULL DEFAULT 0
        );
        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            expires_at TIMESTAMP NOT NULL
        );
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            emoji TEXT NOT NULL,
            description TEXT,
            is_active INTEGER NOT NULL DEFAULT 1
        );
        CREATE TABLE IF NOT EXISTS products (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT NOT NULL,
            price TEXT NOT NULL,
            image_url TEXT NOT NULL,
            stock INTEGER NOT NULL DEFAULT 0 CHECK (stock >= 0 AND typeof(stock) = 'integer'),
            tag TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            category_id INTEGER NOT NULL REFERENCES categories(id),
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE TABLE IF NOT EXISTS orders (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER REFERENCES users(id),
            name TEXT NOT NULL,
            phone TEXT NOT NULL,
            address TEXT NOT NULL,
            instructions TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            payment_method TEXT NOT NULL,
            payment_phone TEXT,
            subtotal TEXT NOT NULL,
            delivery_fee TEXT NOT NULL,
            total TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        CREATE TABLE IF NOT EXISTS order_items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            order_id INTEGER NOT NULL REFERENCES orders(id),
            product_id INTEGER NOT NULL REFERENCES products(id),
            quantity INTEGER NOT NULL,
            price TEXT NOT NULL,
            subtotal TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS subscriptions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id),
            name TEXT NOT NULL,
            phone TEXT NOT NULL,
            address TEXT NOT NULL,
            instructions TEXT,
            status TEXT NOT NULL DEFAULT 'active',
            plan_type TEXT NOT NULL,
            start_date TIMESTAMP NOT NULL,
            next_delivery_date TIMESTAMP NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
    """)


def query(sql, params=(), one=False):
    """Execute a SELECT and return rows as dicts."""
    with _lock:
        cur = get_connection().execute(sql, params)
        rows = [dict(r) for r in cur.fetchall()]
    if one:
        return rows[0] if rows else None
    return rows


def execute(sql, params=()):
    """Execute an INSERT / UPDATE / DELETE and return lastrowid."""
    with _lock:
        cur = get_connection().execute(sql, params)
        return cur.lastrowid


def execute_rowcount(sql, params=()):
    """Execute an UPDATE / DELETE and return the number of rows touched."""
    with _lock:
        cur = get_connection().execute(sql, params)
        return cur.rowcount


@contextmanager
def transaction():
    """Run the enclosed statements atomically; any exception rolls back."""
    with _lock:
        conn = get_connection()
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")
