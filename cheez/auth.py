"""
Authentication & authorization helpers.
Handles password hashing, server-side sessions, and login/logout flows.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone

from cheez import config
from cheez.database import execute, query
from cheez.errors import AuthenticationError, AuthorizationError, store_guard
from cheez.models import Identity

logger = logging.getLogger(__name__)

HASH_SCHEME = "pbkdf2_sha256"


# --------------- Password hashing ----------------------------------------

def hash_password(plain: str, salt: str | None = None, iterations: int | None = None) -> str:
    """Salted PBKDF2 hash, stored as ``scheme$iterations$salt$hash``."""
    salt = salt or secrets.token_hex(16)
    iterations = iterations or config.PASSWORD_ITERATIONS
    digest = hashlib.pbkdf2_hmac("sha256", plain.encode(), bytes.fromhex(salt), iterations)
    return f"{HASH_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(plain: str, hashed: str) -> bool:
    try:
        scheme, iterations, salt, _ = hashed.split("$")
    except ValueError:
        return False
    if scheme != HASH_SCHEME:
        return False
    return hmac.compare_digest(hash_password(plain, salt, int(iterations)), hashed)


# --------------- Sessions -------------------------------------------------

def _now():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_session(user_id: int) -> str:
    session_id = secrets.token_urlsafe(32)
    expires = _now() + timedelta(minutes=config.SESSION_TTL_MINUTES)
    execute(
        "INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, ?)",
        (session_id, user_id, expires.isoformat(sep=" ")),
    )
    return session_id


def get_identity(session_id: str | None) -> Identity | None:
    """Resolve a session id to the identity it carries, or None."""
    if not session_id:
        return None
    row = query(
        "SELECT s.expires_at, u.id, u.username, u.is_admin "
        "FROM sessions s JOIN users u ON u.id = s.user_id WHERE s.id = ?",
        (session_id,), one=True,
    )
    if row is None:
        return None
    if datetime.fromisoformat(row["expires_at"]) <= _now():
        execute("DELETE FROM sessions WHERE id = ?", (session_id,))
        return None
    return Identity(user_id=row["id"], username=row["username"], is_admin=bool(row["is_admin"]))


# --------------- High‑level auth flows -----------------------------------

def create_user(username: str, password: str, is_admin: bool = False) -> int:
    """Create a new user account. Returns user id."""
    return execute(
        "INSERT INTO users (username, password_hash, is_admin) VALUES (?, ?, ?)",
        (username, hash_password(password), int(is_admin)),
    )


def login_user(username: str, password: str) -> tuple[str, Identity]:
    """Validate credentials and open a session."""
    with store_guard("Failed to log in"):
        user = query("SELECT * FROM users WHERE username = ?", (username,), one=True)
        if user is None:
            logger.info("Login failed for unknown user %r", username)
            raise AuthenticationError("Incorrect username.")
        if not verify_password(password, user["password_hash"]):
            logger.info("Login failed for %r: bad password", username)
            raise AuthenticationError("Incorrect password.")
        session_id = create_session(user["id"])
    logger.info("User %r logged in", username)
    identity = Identity(user_id=user["id"], username=user["username"], is_admin=bool(user["is_admin"]))
    return session_id, identity


def logout_user(session_id: str | None):
    with store_guard("Failed to logout"):
        if session_id:
            execute("DELETE FROM sessions WHERE id = ?", (session_id,))
    logger.info("Session closed")


# --------------- Role checks ----------------------------------------------

def require_user(identity: Identity | None) -> Identity:
    if identity is None or not identity.is_authenticated:
        raise AuthenticationError("Not authenticated")
    return identity


def require_admin(identity: Identity | None) -> Identity:
    if identity is None or not identity.is_admin:
        raise AuthorizationError("Unauthorized")
    return identity
