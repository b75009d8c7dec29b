"""Logging for the accounts CLI and web app.

Login outcomes (accounts.login) and provisioning commands (accounts.cli)
are also kept in their own rotating files, giving an audit trail of who
logged in and which accounts were changed. Password material is never
logged by either.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that also write to their own file
FILE_LOGGERS = ["accounts.login", "accounts.cli"]


def setup_logging(level=None, log_dir=None):
    """Attach a console handler and the login/cli audit files.

    `level` defaults to LOG_LEVEL (INFO when unset or unknown) and
    `log_dir` to LOG_DIR ("logs"). Audit files rotate at 5 MB, 3 backups.
    Does nothing when the root logger is already configured, so the web
    app and the CLI can both call it.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if level is None:
        level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO
    if log_dir is None:
        log_dir = os.environ.get("LOG_DIR", "logs")

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    os.makedirs(log_dir, exist_ok=True)
    for name in FILE_LOGGERS:
        log_file = os.path.join(log_dir, f"{name.replace('.', '_')}.log")
        handler = RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=3
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logging.getLogger(name).addHandler(handler)
