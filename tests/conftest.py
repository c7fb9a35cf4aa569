"""Shared fixtures: an in-memory stand-in for the MariaDB CLIs."""

from __future__ import annotations

import os
import re

import pytest

from config import ENV_LOG_DIR
from modules.mariadb import admin, bootstrap
from modules.mariadb.settings import BootstrapConfig


@pytest.fixture(scope="session", autouse=True)
def _log_dir(tmp_path_factory):
    os.environ[ENV_LOG_DIR] = str(tmp_path_factory.mktemp("log"))


_LITERAL = r"'((?:[^'\\]|\\.)*)'"
_IDENT = r"`((?:[^`]|``)*)`"
_UNESCAPE = {"0": "\x00", "n": "\n", "r": "\r", "Z": "\x1a"}

CREATE_DB_RE = re.compile(rf"^CREATE DATABASE IF NOT EXISTS {_IDENT};$")
CREATE_USER_RE = re.compile(
    rf"^CREATE USER IF NOT EXISTS {_LITERAL}@{_LITERAL} IDENTIFIED BY {_LITERAL};$"
)
GRANT_RE = re.compile(rf"^GRANT ALL PRIVILEGES ON {_IDENT}\.\* TO {_LITERAL}@{_LITERAL};$")
ALTER_USER_RE = re.compile(rf"^ALTER USER {_LITERAL}@{_LITERAL} IDENTIFIED BY {_LITERAL};$")


def _unliteral(text: str) -> str:
    return re.sub(r"\\(.)", lambda m: _UNESCAPE.get(m.group(1), m.group(1)), text)


def _unident(text: str) -> str:
    return text.replace("``", "`")


class FakeMariaDB:
    """Models server process state, root credential state and grants."""

    def __init__(self, root_password: str | None = None):
        self.running = False
        self.root_password = root_password
        self.databases: set[str] = set()
        self.users: dict[tuple[str, str], str] = {}
        self.grants: set[tuple[str, str, str]] = set()
        self.statements: list[str] = []
        self.calls: list[list[str]] = []
        self.ping_ok = True
        self.ping_failures = 0
        self.start_ok = True
        self.fail_on: tuple[str, ...] = ()
        self.shutdown_fail_modes: set[str] = set()

    # state helpers -------------------------------------------------------
    def snapshot(self):
        return (
            self.root_password,
            frozenset(self.databases),
            tuple(sorted(self.users.items())),
            frozenset(self.grants),
        )

    def can_access(self, user: str, password: str, database: str) -> bool:
        host_pw = self.users.get((user, "%"))
        if host_pw is None or host_pw != password:
            return False
        return (user, "%", database) in self.grants

    # CLI dispatch --------------------------------------------------------
    def run(self, args, env, input_text=None, timeout=None):
        args = list(args)
        self.calls.append(args)
        assert not any("MYSQL_PWD" in a for a in args)
        password = env.get("MYSQL_PWD")
        prog = os.path.basename(args[0])
        if prog == "service":
            if not self.start_ok:
                return 1, "", "failed to start"
            self.running = True
            return 0, "Starting MariaDB database server", ""
        if prog == "mysqladmin":
            return self._mysqladmin(args[-1], password)
        if prog in ("mariadb", "mysql"):
            return self._mysql(input_text or "", password)
        return 127, "", f"{prog}: not found"

    def _auth_ok(self, password: str | None) -> bool:
        return password == self.root_password

    def _mysqladmin(self, command: str, password: str | None):
        if not self.running:
            return 1, "", "connect to server at 'localhost' failed"
        if command == "ping":
            if self.ping_failures > 0:
                self.ping_failures -= 1
                return 1, "", "connect to server at 'localhost' failed"
            if not self.ping_ok:
                return 1, "", "connect to server at 'localhost' failed"
            return 0, "mysqld is alive", ""
        if command == "shutdown":
            mode = "socket" if password is None else "password"
            if mode in self.shutdown_fail_modes or not self._auth_ok(password):
                return 1, "", "Access denied for user 'root'@'localhost'"
            self.running = False
            return 0, "", ""
        return 1, "", f"unknown command '{command}'"

    def _mysql(self, sql: str, password: str | None):
        if not self.running:
            return 1, "", "Can't connect to local server through socket"
        if not self._auth_ok(password):
            return 1, "", "ERROR 1045 (28000): Access denied for user 'root'@'localhost'"
        self.statements.append(sql)
        if any(sql.startswith(prefix) for prefix in self.fail_on):
            return 1, "", "ERROR 1064 (42000): injected failure"
        if sql == "SELECT 1;" or sql == "FLUSH PRIVILEGES;":
            return 0, "1\n" if sql == "SELECT 1;" else "", ""
        m = CREATE_DB_RE.match(sql)
        if m:
            self.databases.add(_unident(m.group(1)))
            return 0, "", ""
        m = CREATE_USER_RE.match(sql)
        if m:
            key = (_unliteral(m.group(1)), _unliteral(m.group(2)))
            self.users.setdefault(key, _unliteral(m.group(3)))
            return 0, "", ""
        m = GRANT_RE.match(sql)
        if m:
            key = (_unliteral(m.group(2)), _unliteral(m.group(3)))
            if key not in self.users:
                return 1, "", "ERROR 1133 (28000): Can't find any matching row in the user table"
            pattern = _unident(m.group(1))
            database = re.sub(r"\\(.)", r"\1", pattern)
            self.grants.add((key[0], key[1], database))
            return 0, "", ""
        m = ALTER_USER_RE.match(sql)
        if m:
            key = (_unliteral(m.group(1)), _unliteral(m.group(2)))
            password = _unliteral(m.group(3))
            if key == ("root", "localhost"):
                self.root_password = password
                return 0, "", ""
            if key not in self.users:
                return 1, "", "ERROR 1396 (HY000): Operation ALTER USER failed"
            self.users[key] = password
            return 0, "", ""
        return 1, "", f"ERROR 1064 (42000): unparsed statement {sql!r}"


@pytest.fixture
def engine(monkeypatch):
    fake = FakeMariaDB()
    monkeypatch.setattr(admin, "_run", fake.run)
    return fake


@pytest.fixture
def sleeps(monkeypatch):
    calls: list[float] = []
    monkeypatch.setattr(bootstrap, "_sleep", calls.append)
    return calls


@pytest.fixture
def config():
    return BootstrapConfig(
        database="wordpress_db",
        user="wordpress_user",
        password="wp-secret",
        root_password="root-secret",
        max_ping_attempts=5,
    )
