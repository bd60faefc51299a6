"""
User routes — login, logout, current session.
"""

from cheez.auth import login_user, logout_user, require_user
from cheez.models import Identity


def handle_login(data: dict) -> tuple[str, dict]:
    """POST /api/auth/login — returns (session id, user summary)."""
    session_id, identity = login_user(data.get("username", ""), data.get("password", ""))
    return session_id, identity.summary()


def handle_logout(session_id: str | None) -> dict:
    """POST /api/auth/logout handler."""
    logout_user(session_id)
    return {"message": "Logged out successfully"}


def handle_me(identity: Identity | None) -> dict:
    """GET /api/auth/me handler."""
    return require_user(identity).summary()
