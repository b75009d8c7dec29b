"""Login flow on top of the credential and user views.

The credential lookup is the only code path that sees a password hash.
Once a login succeeds, the session is filled from v01_users, which has no
password column.
"""

import logging
from dataclasses import dataclass
from typing import MutableMapping, Optional

from .credentials import hash_password, verify_password
from .database.accounts_db import (
    AccountNotFoundError,
    get_key,
    get_user,
    get_user_by_username,
    update_account,
)

logger = logging.getLogger(__name__)

SESSION_KEYS = ("userid", "username", "administrator")


@dataclass
class LoginResult:
    success: bool
    userid: Optional[int] = None
    profile: Optional[dict] = None
    error: Optional[str] = None


def check_credentials(username: str, attempt: str) -> Optional[int]:
    """Return the userid if `attempt` matches the stored hash, else None."""
    if not username or not attempt:
        return None

    key = get_key(username)
    if key is None:
        logger.info("Login failed for %s: unknown or disabled user", username)
        return None

    if not verify_password(attempt, key["password"]):
        logger.info("Login failed for %s: bad password", username)
        return None

    return key["userid"]


def connect(session: MutableMapping, username: str, attempt: str) -> LoginResult:
    """Authenticate and populate `session` with the user's identity.

    The session is always cleared first, so a failed attempt never leaves a
    previous user logged in.
    """
    session.clear()

    userid = check_credentials(username, attempt)
    if userid is None:
        return LoginResult(success=False, error="Invalid username or password")

    profile = get_user(userid)
    if profile is None:
        # Disabled between the credential check and the profile read
        logger.warning("Profile for userid %s vanished during login", userid)
        return LoginResult(success=False, error="Invalid username or password")

    for key in SESSION_KEYS:
        session[key] = profile[key]

    logger.info("User %s logged in", profile["username"])
    return LoginResult(success=True, userid=userid, profile=dict(profile))


def disconnect(session: MutableMapping) -> None:
    username = session.get("username")
    session.clear()
    if username:
        logger.info("User %s logged out", username)


def register_account(
    username: str,
    password: str,
    fname: Optional[str] = None,
    lname: Optional[str] = None,
    email: Optional[str] = None,
    administrator: Optional[bool] = None,
) -> int:
    """Create an account, or reset its password and any given fields.

    None arguments keep the stored values of an existing account; a new
    account defaults to a non-administrator.
    """
    if not username or not username.strip():
        raise ValueError("username must not be empty")
    if not password:
        raise ValueError("password must not be empty")

    userid = update_account(
        username.strip(),
        fname=fname,
        lname=lname,
        email=email,
        password_hash=hash_password(password),
        administrator=administrator,
    )
    logger.info("Saved account %s (userid %s)", username.strip(), userid)
    return userid


def change_password(username: str, new_password: str) -> int:
    """Replace the password of an existing, enabled account."""
    if not new_password:
        raise ValueError("password must not be empty")
    # A password write to an unknown name would create an account
    if get_user_by_username(username) is None:
        raise AccountNotFoundError(username)
    return update_account(username, password_hash=hash_password(new_password))
