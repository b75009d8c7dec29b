"""Accounts - web login and account administration"""

import logging
import os
from functools import wraps

from flask import Flask, jsonify, request, session

from accounts.login import connect, disconnect, register_account
from accounts.database.accounts_db import (
    AccountNotFoundError,
    disable_account,
    get_user,
    list_users,
    update_account,
)

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 1000


def get_secret_key() -> str:
    """Session signing key from ACCOUNTS_SECRET_KEY."""
    secret_key = os.environ.get("ACCOUNTS_SECRET_KEY")
    if not secret_key:
        raise ValueError("ACCOUNTS_SECRET_KEY must be set")
    return secret_key


app = Flask(__name__)
app.secret_key = get_secret_key()


def _current_user():
    """Re-read the session user from v01_users; disabled users drop out."""
    userid = session.get("userid")
    if userid is None:
        return None
    profile = get_user(userid)
    if profile is None:
        disconnect(session)
    return profile


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            user = _current_user()
        except Exception:
            logger.exception("Session lookup failed")
            return jsonify({"error": "Internal server error"}), 500
        if user is None:
            return jsonify({"error": "Not logged in."}), 401
        return view(user, *args, **kwargs)
    return wrapper


def admin_required(view):
    @wraps(view)
    @login_required
    def wrapper(user, *args, **kwargs):
        if not user["administrator"]:
            return jsonify({"error": "Administrator access required."}), 403
        return view(user, *args, **kwargs)
    return wrapper


@app.route("/login", methods=["POST"])
def login():
    """Check credentials and start a session."""
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""

    if not username or not password:
        return jsonify({"error": "username and password are required."}), 400

    try:
        result = connect(session, username, password)
    except Exception:
        logger.exception("Login for %s failed", username)
        return jsonify({"error": "Internal server error"}), 500

    if not result.success:
        return jsonify({"error": result.error}), 401
    return jsonify({"success": True, "user": result.profile})


@app.route("/logout", methods=["POST"])
def logout():
    disconnect(session)
    return jsonify({"success": True})


@app.route("/api/me")
@login_required
def api_me(user):
    """Profile of the logged-in user."""
    return jsonify({"user": dict(user)})


@app.route("/api/users")
@admin_required
def api_users(user):
    limit = request.args.get("limit", 100, type=int)
    if limit < 1:
        return jsonify({"error": "limit must be a positive integer."}), 400
    try:
        users = list_users(limit=min(limit, MAX_LIST_LIMIT))
    except Exception:
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"users": [dict(u) for u in users] if users else []})


@app.route("/api/accounts", methods=["POST"])
@admin_required
def api_save_account(user):
    """Create an account (password required) or update profile fields."""
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    if not username:
        return jsonify({"error": "username is required."}), 400

    administrator = data.get("administrator")
    if administrator is not None and not isinstance(administrator, bool):
        return jsonify({"error": "administrator must be true or false."}), 400

    try:
        if data.get("password"):
            userid = register_account(
                username,
                data["password"],
                fname=data.get("fname"),
                lname=data.get("lname"),
                email=data.get("email"),
                administrator=administrator,
            )
        else:
            userid = update_account(
                username,
                fname=data.get("fname"),
                lname=data.get("lname"),
                email=data.get("email"),
                administrator=administrator,
            )
    except AccountNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        logger.exception("Saving account %s failed", username)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True, "userid": userid})


@app.route("/api/accounts/<username>/disable", methods=["POST"])
@admin_required
def api_disable_account(user, username):
    if username == user["username"]:
        return jsonify({"error": "Cannot disable your own account."}), 400
    try:
        userid = disable_account(username)
    except AccountNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        logger.exception("Disabling account %s failed", username)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"success": True, "userid": userid})


@app.route("/health")
def health():
    """Health check endpoint."""
    return jsonify({"status": "healthy"})


if __name__ == "__main__":
    from accounts.log_config import setup_logging

    setup_logging()
    app.run(host="0.0.0.0", port=3000, debug=False)
