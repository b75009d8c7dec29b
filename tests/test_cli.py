"""Tests for accounts/cli.py - provisioning and account commands."""

from unittest.mock import patch

import pytest

from accounts.cli import build_parser, main
from tests.conftest import make_user_row


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("accounts.cli.setup_logging"):
        yield


class TestParser:

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_admin_flag_is_tristate(self):
        parser = build_parser()
        assert parser.parse_args(["set-account", "a"]).admin is None
        assert parser.parse_args(["set-account", "a", "--admin"]).admin is True
        assert parser.parse_args(["set-account", "a", "--no-admin"]).admin is False


class TestSchemaCommands:

    @patch("accounts.cli.apply_schema", return_value=4)
    def test_init_schema(self, mock_apply, capsys):
        main(["--database-url", "postgresql://owner@db/acc", "init-schema"])
        mock_apply.assert_called_once_with("postgresql://owner@db/acc")
        assert "Applied 4" in capsys.readouterr().out

    @patch("accounts.cli.grant_app_role")
    def test_grant(self, mock_grant):
        main(["grant", "webapp"])
        mock_grant.assert_called_once_with("webapp", None)

    @patch("accounts.cli.apply_schema")
    @patch("accounts.cli.drop_schema")
    def test_reset_requires_yes(self, mock_drop, mock_apply):
        with pytest.raises(SystemExit) as exc:
            main(["reset"])
        assert exc.value.code == 1
        mock_drop.assert_not_called()

    @patch("accounts.cli.apply_schema")
    @patch("accounts.cli.drop_schema")
    def test_reset_drops_then_applies(self, mock_drop, mock_apply):
        main(["reset", "--yes"])
        mock_drop.assert_called_once()
        mock_apply.assert_called_once()


class TestAccountCommands:

    @patch("accounts.cli.update_account", return_value=3)
    def test_set_account_without_password(self, mock_update, capsys):
        main(["set-account", "alice", "--email", "a@example.com", "--no-admin"])
        mock_update.assert_called_once_with(
            "alice", fname=None, lname=None, email="a@example.com", administrator=False,
        )
        assert "userid 3" in capsys.readouterr().out

    @patch("accounts.cli.register_account", return_value=8)
    @patch("accounts.cli.getpass.getpass", side_effect=["pw", "pw"])
    def test_set_account_new_user_with_password(self, _getpass, mock_register):
        main(["set-account", "alice", "--password", "--fname", "Alice", "--admin"])
        mock_register.assert_called_once_with(
            "alice", "pw", fname="Alice", lname=None, email=None, administrator=True,
        )

    @patch("accounts.cli.register_account", return_value=1)
    @patch("accounts.cli.getpass.getpass", side_effect=["pw", "pw"])
    def test_password_reset_keeps_admin_flag(self, _getpass, mock_register):
        # Holds for disabled accounts too, which the profile view cannot see
        main(["set-account", "root", "--password"])
        mock_register.assert_called_once_with(
            "root", "pw", fname=None, lname=None, email=None, administrator=None,
        )

    @patch("accounts.cli.change_password", return_value=1)
    @patch("accounts.cli.getpass.getpass", side_effect=["n3w", "n3w"])
    def test_passwd(self, _getpass, mock_change, capsys):
        main(["passwd", "alice"])
        mock_change.assert_called_once_with("alice", "n3w")
        assert "Password changed" in capsys.readouterr().out

    @patch("accounts.cli.register_account")
    @patch("accounts.cli.getpass.getpass", side_effect=["pw", "different"])
    def test_password_mismatch_exits(self, _getpass, mock_register, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["set-account", "alice", "--password"])
        assert exc.value.code == 1
        assert "do not match" in capsys.readouterr().err
        mock_register.assert_not_called()

    @patch("accounts.cli.disable_account", return_value=4)
    def test_disable(self, mock_disable):
        main(["disable", "bob"])
        mock_disable.assert_called_once_with("bob")

    @patch("accounts.cli.disable_account", return_value=4)
    def test_account_changes_are_logged(self, _disable, caplog):
        with caplog.at_level("INFO", logger="accounts.cli"):
            main(["disable", "bob"])
        assert "Disabled account bob" in caplog.text

    @patch("accounts.cli.enable_account", return_value=4)
    def test_enable(self, mock_enable):
        main(["enable", "bob"])
        mock_enable.assert_called_once_with("bob")

    @patch("accounts.cli.get_user_by_username", return_value=make_user_row())
    def test_show(self, _lookup, capsys):
        main(["show", "alice"])
        out = capsys.readouterr().out
        assert "username: alice" in out
        assert "password" not in out

    @patch("accounts.cli.get_user_by_username", return_value=None)
    def test_show_missing_exits_1(self, _lookup):
        with pytest.raises(SystemExit) as exc:
            main(["show", "ghost"])
        assert exc.value.code == 1

    @patch("accounts.cli.list_users")
    def test_list(self, mock_list, capsys):
        mock_list.return_value = [
            make_user_row(),
            make_user_row(userid=2, username="root", administrator=True),
        ]
        main(["list", "--limit", "5"])
        mock_list.assert_called_once_with(limit=5)
        out = capsys.readouterr().out
        assert "alice" in out
        assert "root (admin)" in out

    @patch("accounts.cli.check_credentials", return_value=1)
    @patch("accounts.cli.getpass.getpass", return_value="pw")
    def test_check_ok(self, _getpass, mock_check, capsys):
        main(["check", "alice"])
        mock_check.assert_called_once_with("alice", "pw")
        assert "Login ok" in capsys.readouterr().out

    @patch("accounts.cli.check_credentials", return_value=None)
    @patch("accounts.cli.getpass.getpass", return_value="pw")
    def test_check_failure_exits_1(self, _getpass, _check):
        with pytest.raises(SystemExit) as exc:
            main(["check", "alice"])
        assert exc.value.code == 1


class TestErrors:

    @patch("accounts.cli.disable_account", side_effect=RuntimeError("db down"))
    def test_exception_exits_1(self, _disable, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["disable", "bob"])
        assert exc.value.code == 1
        assert "db down" in capsys.readouterr().err

    @pytest.mark.parametrize("command", ["disable", "enable", "passwd"])
    def test_unknown_user_reported_by_name(self, command, capsys):
        from accounts.database.accounts_db import AccountNotFoundError
        missing = AccountNotFoundError("ghost")
        with patch("accounts.cli.disable_account", side_effect=missing), \
             patch("accounts.cli.enable_account", side_effect=missing), \
             patch("accounts.cli.change_password", side_effect=missing), \
             patch("accounts.cli.getpass.getpass", return_value="pw"):
            with pytest.raises(SystemExit) as exc:
                main([command, "ghost"])
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "No user named ghost" in err
        assert "password required" not in err
