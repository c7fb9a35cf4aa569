"""SQL text builders for the bootstrap statements.

Every credential is single-quote-embedded through quote_literal and every
identifier backtick-quoted through quote_ident; callers never interpolate
raw values. All statements are safe to re-run.
"""

from __future__ import annotations

from config import APP_USER_HOST, ROOT_HOST, ROOT_USER

_LITERAL_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\x00": "\\0",
    "\n": "\\n",
    "\r": "\\r",
    "\x1a": "\\Z",
}


def quote_literal(value: str) -> str:
    escaped = "".join(_LITERAL_ESCAPES.get(ch, ch) for ch in value)
    return f"'{escaped}'"


def quote_ident(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def quote_grant_db(database: str) -> str:
    # GRANT treats _ and % in database names as wildcards
    escaped = database.replace("\\", "\\\\").replace("_", "\\_").replace("%", "\\%")
    return quote_ident(escaped)


def account(user: str, host: str) -> str:
    return f"{quote_literal(user)}@{quote_literal(host)}"


def probe() -> str:
    return "SELECT 1;"


def create_database(database: str) -> str:
    return f"CREATE DATABASE IF NOT EXISTS {quote_ident(database)};"


def create_user(user: str, password: str, host: str = APP_USER_HOST) -> str:
    return (
        "CREATE USER IF NOT EXISTS "
        f"{account(user, host)} IDENTIFIED BY {quote_literal(password)};"
    )


def alter_user_password(user: str, password: str, host: str = APP_USER_HOST) -> str:
    return f"ALTER USER {account(user, host)} IDENTIFIED BY {quote_literal(password)};"


def grant_all(database: str, user: str, host: str = APP_USER_HOST) -> str:
    return f"GRANT ALL PRIVILEGES ON {quote_grant_db(database)}.* TO {account(user, host)};"


def set_root_password(password: str) -> str:
    return f"ALTER USER {account(ROOT_USER, ROOT_HOST)} IDENTIFIED BY {quote_literal(password)};"


def flush_privileges() -> str:
    return "FLUSH PRIVILEGES;"
