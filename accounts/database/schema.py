"""
Accounts schema surface.

One table holds the user records. Applications never read it: profile
reads go through v01_users, authentication reads go through
sv01_credential, and every write goes through p02_updateaccount. Both
views hide disabled users, and only the credential view carries the
password hash.
"""

import logging

from psycopg2 import sql

from .connection import get_cursor

logger = logging.getLogger(__name__)

USER_TABLE = """
    CREATE TABLE IF NOT EXISTS a01_user (
        userid SERIAL PRIMARY KEY,
        username VARCHAR(64) NOT NULL UNIQUE,
        fname VARCHAR(64),
        lname VARCHAR(64),
        accountid INTEGER,
        password VARCHAR(128) NOT NULL,
        email VARCHAR(255),
        administrator BOOLEAN NOT NULL DEFAULT FALSE,
        disabled TIMESTAMPTZ
    )
"""

USER_VIEW = """
    CREATE OR REPLACE VIEW v01_users AS
    SELECT userid, username, fname, lname, accountid, email, administrator
    FROM a01_user
    WHERE disabled IS NULL
"""

CREDENTIAL_VIEW = """
    CREATE OR REPLACE VIEW sv01_credential AS
    SELECT userid, username, password
    FROM a01_user
    WHERE disabled IS NULL
"""

UPDATE_ACCOUNT_PROCEDURE = """
    CREATE OR REPLACE FUNCTION p02_updateaccount(
        uname VARCHAR,
        firstname VARCHAR,
        lastname VARCHAR,
        emailaddr VARCHAR,
        pword VARCHAR,
        administ BOOLEAN,
        dlock BOOLEAN
    ) RETURNS integer AS $$
    DECLARE
        v_userid integer;
    BEGIN
        SELECT userid INTO v_userid FROM a01_user
        WHERE username = uname
        FOR UPDATE;

        IF v_userid IS NULL THEN
            -- Without a password this can only be an update
            IF pword IS NULL THEN
                RAISE EXCEPTION 'no account named %', uname
                    USING ERRCODE = 'no_data_found';
            END IF;
            INSERT INTO a01_user (username, fname, lname, email, password, administrator, disabled)
            VALUES (uname, firstname, lastname, emailaddr, pword,
                    COALESCE(administ, FALSE),
                    CASE WHEN dlock THEN NOW() ELSE NULL END)
            RETURNING userid INTO v_userid;
        ELSE
            UPDATE a01_user SET
                fname = COALESCE(firstname, fname),
                lname = COALESCE(lastname, lname),
                email = COALESCE(emailaddr, email),
                password = COALESCE(pword, password),
                administrator = COALESCE(administ, administrator),
                disabled = CASE
                    WHEN dlock IS NULL THEN disabled
                    WHEN dlock THEN COALESCE(disabled, NOW())
                    ELSE NULL
                END
            WHERE userid = v_userid;
        END IF;

        RETURN v_userid;
    END;
    $$ LANGUAGE plpgsql SECURITY DEFINER SET search_path = public
"""

UPDATE_ACCOUNT_SIGNATURE = (
    "p02_updateaccount(VARCHAR, VARCHAR, VARCHAR, VARCHAR, VARCHAR, BOOLEAN, BOOLEAN)"
)

# Creation order: the views and the procedure depend on the table.
SCHEMA_STATEMENTS = [
    USER_TABLE,
    USER_VIEW,
    CREDENTIAL_VIEW,
    UPDATE_ACCOUNT_PROCEDURE,
]


def apply_schema(database_url=None) -> int:
    """Create (or replace) the table, views and procedure in one transaction."""
    with get_cursor(database_url) as cur:
        for statement in SCHEMA_STATEMENTS:
            cur.execute(statement)
    logger.info("Applied %d schema statements", len(SCHEMA_STATEMENTS))
    return len(SCHEMA_STATEMENTS)


def grant_app_role(role: str, database_url=None) -> None:
    """Limit `role` to the views and the update procedure.

    The table itself stays private; PUBLIC also loses the default EXECUTE
    on the procedure.
    """
    if not role or not role.strip():
        raise ValueError("role must be a non-empty name")

    ident = sql.Identifier(role.strip())
    statements = [
        sql.SQL("REVOKE ALL ON a01_user FROM PUBLIC"),
        sql.SQL("REVOKE ALL ON a01_user FROM {}").format(ident),
        sql.SQL("GRANT SELECT ON v01_users, sv01_credential TO {}").format(ident),
        sql.SQL("REVOKE EXECUTE ON FUNCTION " + UPDATE_ACCOUNT_SIGNATURE + " FROM PUBLIC"),
        sql.SQL("GRANT EXECUTE ON FUNCTION " + UPDATE_ACCOUNT_SIGNATURE + " TO {}").format(ident),
    ]
    with get_cursor(database_url) as cur:
        for statement in statements:
            cur.execute(statement)
    logger.info("Granted view/procedure access to role %s", role.strip())


def drop_schema(database_url=None) -> None:
    """Drop procedure, views and table. Destroys all account data."""
    with get_cursor(database_url) as cur:
        cur.execute("DROP FUNCTION IF EXISTS " + UPDATE_ACCOUNT_SIGNATURE)
        cur.execute("DROP VIEW IF EXISTS sv01_credential")
        cur.execute("DROP VIEW IF EXISTS v01_users")
        cur.execute("DROP TABLE IF EXISTS a01_user")
    logger.warning("Dropped accounts schema")
