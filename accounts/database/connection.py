"""Connection factory for the accounts database.

Application code connects as a role that can only read the v01/sv01 views
and execute the p02 procedure; provisioning (schema, grants) connects as
the owner. Both use the same DSN format, chosen by DATABASE_URL or an
explicit override.
"""

import logging
import os
from contextlib import contextmanager
from typing import Optional

import psycopg2
from psycopg2.extras import RealDictCursor

logger = logging.getLogger(__name__)

APPLICATION_NAME = "accounts"


def get_connection(database_url: Optional[str] = None):
    """Open a connection to DATABASE_URL (or the given DSN)."""
    database_url = database_url or os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL must be set")
    return psycopg2.connect(database_url, application_name=APPLICATION_NAME)


@contextmanager
def get_cursor(database_url: Optional[str] = None):
    """Yield a RealDictCursor; commit on success, roll back on error."""
    conn = get_connection(database_url)
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            yield cur
            conn.commit()
    except Exception:
        logger.debug("Rolling back accounts transaction")
        conn.rollback()
        raise
    finally:
        conn.close()
