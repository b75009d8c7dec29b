"""
Account queries.

Reads go through the v01_users and sv01_credential views, writes through
p02_updateaccount. Nothing here names the base table.
"""

from typing import Optional

from psycopg2.errors import NoDataFound

from .connection import get_cursor


class AccountNotFoundError(Exception):
    """Raised when an update names an account that does not exist."""

    def __init__(self, username: str):
        super().__init__(f"No user named {username}")
        self.username = username


# --- Credentials ---

def get_key(username: str) -> Optional[dict]:
    """Return {userid, password} for an enabled user, or None."""
    with get_cursor() as cur:
        cur.execute("""
            SELECT userid, password
            FROM sv01_credential
            WHERE username = %s
        """, (username,))
        return cur.fetchone()


# --- Profiles ---

def get_user(userid: int) -> Optional[dict]:
    with get_cursor() as cur:
        cur.execute("""
            SELECT userid, username, fname, lname, accountid, email, administrator
            FROM v01_users
            WHERE userid = %s
        """, (userid,))
        return cur.fetchone()


def get_user_by_username(username: str) -> Optional[dict]:
    with get_cursor() as cur:
        cur.execute("""
            SELECT userid, username, fname, lname, accountid, email, administrator
            FROM v01_users
            WHERE username = %s
        """, (username,))
        return cur.fetchone()


def list_users(limit: int = 100) -> list:
    with get_cursor() as cur:
        cur.execute("""
            SELECT userid, username, fname, lname, accountid, email, administrator
            FROM v01_users
            ORDER BY username
            LIMIT %s
        """, (limit,))
        return cur.fetchall()


# --- Writes ---

def update_account(
    username: str,
    fname: Optional[str] = None,
    lname: Optional[str] = None,
    email: Optional[str] = None,
    password_hash: Optional[str] = None,
    administrator: Optional[bool] = None,
    disabled: Optional[bool] = None,
) -> int:
    """Create or update an account; None arguments keep stored values.

    `disabled` maps to the procedure's dlock flag: True disables, False
    re-enables, None leaves the account as it is. Without a password
    hash the account must already exist, else AccountNotFoundError.
    """
    try:
        with get_cursor() as cur:
            cur.execute("""
                SELECT p02_updateaccount(%s, %s, %s, %s, %s, %s, %s) AS userid
            """, (username, fname, lname, email, password_hash, administrator, disabled))
            return cur.fetchone()["userid"]
    except NoDataFound as e:
        raise AccountNotFoundError(username) from e


def disable_account(username: str) -> int:
    return update_account(username, disabled=True)


def enable_account(username: str) -> int:
    return update_account(username, disabled=False)
