"""Provisioning and account management CLI.

    python -m accounts.cli init-schema
    python -m accounts.cli grant webapp
    python -m accounts.cli set-account alice --password --fname Alice --admin
    python -m accounts.cli passwd alice
    python -m accounts.cli disable alice
    python -m accounts.cli check alice
"""

import argparse
import getpass
import logging
import sys

from .log_config import setup_logging
from .login import change_password, check_credentials, register_account
from .database.accounts_db import (
    AccountNotFoundError,
    disable_account,
    enable_account,
    get_user_by_username,
    list_users,
    update_account,
)
from .database.schema import apply_schema, drop_schema, grant_app_role

logger = logging.getLogger("accounts.cli")

PROFILE_FIELDS = ("userid", "username", "fname", "lname", "accountid", "email", "administrator")


def _print_profile(profile: dict) -> None:
    for field_name in PROFILE_FIELDS:
        print(f"  {field_name}: {profile.get(field_name)}")


def _prompt_password(confirm: bool = True) -> str:
    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Confirm password: ") != password:
        raise ValueError("passwords do not match")
    return password


def cmd_init_schema(args) -> int:
    count = apply_schema(args.database_url)
    print(f"Applied {count} schema statements")
    return 0


def cmd_grant(args) -> int:
    grant_app_role(args.role, args.database_url)
    print(f"Role {args.role} limited to v01_users, sv01_credential and p02_updateaccount")
    return 0


def cmd_reset(args) -> int:
    if not args.yes:
        print("Refusing to drop the accounts schema without --yes", file=sys.stderr)
        return 1
    drop_schema(args.database_url)
    apply_schema(args.database_url)
    print("Accounts schema recreated")
    return 0


def cmd_set_account(args) -> int:
    # Unset options stay None so the procedure keeps the stored values
    if args.password:
        userid = register_account(
            args.username, _prompt_password(),
            fname=args.fname, lname=args.lname, email=args.email,
            administrator=args.admin,
        )
    else:
        userid = update_account(
            args.username, fname=args.fname, lname=args.lname,
            email=args.email, administrator=args.admin,
        )
    logger.info("Saved account %s (userid %s)", args.username, userid)
    print(f"Saved {args.username} (userid {userid})")
    return 0


def cmd_passwd(args) -> int:
    userid = change_password(args.username, _prompt_password())
    logger.info("Changed password for %s", args.username)
    print(f"Password changed for {args.username} (userid {userid})")
    return 0


def cmd_disable(args) -> int:
    userid = disable_account(args.username)
    logger.info("Disabled account %s", args.username)
    print(f"Disabled {args.username} (userid {userid})")
    return 0


def cmd_enable(args) -> int:
    userid = enable_account(args.username)
    logger.info("Enabled account %s", args.username)
    print(f"Enabled {args.username} (userid {userid})")
    return 0


def cmd_show(args) -> int:
    profile = get_user_by_username(args.username)
    if profile is None:
        print(f"No enabled user named {args.username}", file=sys.stderr)
        return 1
    print(f"[{args.username}]")
    _print_profile(profile)
    return 0


def cmd_list(args) -> int:
    users = list_users(limit=args.limit)
    if not users:
        print("  No enabled users")
        return 0
    for user in users:
        admin = " (admin)" if user["administrator"] else ""
        print(f"  {user['userid']:>6}  {user['username']}{admin}")
    return 0


def cmd_check(args) -> int:
    attempt = _prompt_password(confirm=False)
    userid = check_credentials(args.username, attempt)
    if userid is None:
        print("Login failed", file=sys.stderr)
        return 1
    print(f"Login ok (userid {userid})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the accounts schema and users")
    parser.add_argument(
        "--database-url",
        default=None,
        help="DSN for schema commands (defaults to DATABASE_URL)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-schema", help="Create table, views and procedure")
    p.set_defaults(func=cmd_init_schema)

    p = sub.add_parser("grant", help="Limit an application role to the views and procedure")
    p.add_argument("role")
    p.set_defaults(func=cmd_grant)

    p = sub.add_parser("reset", help="Drop and recreate the schema")
    p.add_argument("--yes", action="store_true")
    p.set_defaults(func=cmd_reset)

    p = sub.add_parser("set-account", help="Create or update an account")
    p.add_argument("username")
    p.add_argument("--password", action="store_true", help="Prompt for a new password")
    p.add_argument("--fname")
    p.add_argument("--lname")
    p.add_argument("--email")
    p.add_argument("--admin", action=argparse.BooleanOptionalAction, default=None)
    p.set_defaults(func=cmd_set_account)

    for name, func in (("disable", cmd_disable), ("enable", cmd_enable),
                       ("show", cmd_show), ("check", cmd_check),
                       ("passwd", cmd_passwd)):
        p = sub.add_parser(name)
        p.add_argument("username")
        p.set_defaults(func=func)

    p = sub.add_parser("list", help="List enabled users")
    p.add_argument("--limit", type=int, default=100)
    p.set_defaults(func=cmd_list)

    return parser


def main(argv=None):
    """CLI entry point."""
    setup_logging()

    args = build_parser().parse_args(argv)
    try:
        status = args.func(args)
    except AccountNotFoundError as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
