"""Bootstrap configuration, validated once at startup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from config import (
    ENV_DB,
    ENV_USER,
    ENV_PASS,
    ENV_ROOT_PASS,
    ENV_PING_INTERVAL,
    ENV_MAX_PING_ATTEMPTS,
    ENV_START_CMD,
    ENV_SERVER_CMD,
    MYSQL_BIN,
    MYSQLADMIN_BIN,
    START_CMD,
    SERVER_CMD,
    PING_INTERVAL,
    MAX_PING_ATTEMPTS,
    MIN_BARE_SECRET_LEN,
)
from modules.utils import MASK, split_cmd
from .sql import quote_literal


class ConfigError(ValueError):
    """Raised when the environment does not describe a usable bootstrap."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("; ".join(problems))


@dataclass(frozen=True)
class BootstrapConfig:
    database: str
    user: str
    password: str
    root_password: str
    ping_interval: float = PING_INTERVAL
    max_ping_attempts: int = MAX_PING_ATTEMPTS
    start_command: tuple[str, ...] = tuple(split_cmd(START_CMD))
    server_command: tuple[str, ...] = tuple(split_cmd(SERVER_CMD))
    mysql_bin: str = MYSQL_BIN
    mysqladmin_bin: str = MYSQLADMIN_BIN

    @property
    def secrets(self) -> tuple[str, ...]:
        raw = (self.password, self.root_password)
        # SQL text carries the quoted literal; bare matches only for long secrets
        quoted = tuple(quote_literal(s) for s in raw)
        return quoted + tuple(s for s in raw if len(s) >= MIN_BARE_SECRET_LEN)

    def redacted(self) -> dict:
        return {
            "database": self.database,
            "user": self.user,
            "password": MASK,
            "root_password": MASK,
            "ping_interval": self.ping_interval,
            "max_ping_attempts": self.max_ping_attempts,
            "start_command": " ".join(self.start_command),
            "server_command": " ".join(self.server_command),
            "mysql_bin": self.mysql_bin,
            "mysqladmin_bin": self.mysqladmin_bin,
        }


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def read_env_file(path: Path) -> dict[str, str]:
    """Parse a docker-style .env file into a dict.

    Blank lines and '#' comments are skipped; an optional leading 'export '
    is tolerated; matching outer quotes around the value are removed.
    Lines without '=' are rejected.
    """
    values: dict[str, str] = {}
    text = Path(path).read_text(encoding="utf-8")
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if "=" not in line:
            raise ConfigError([f"{path}:{lineno}: expected KEY=VALUE"])
        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            raise ConfigError([f"{path}:{lineno}: empty key"])
        values[key] = _unquote(value.strip())
    logging.debug("Read %d keys from %s", len(values), path)
    return values


def _parse_interval(raw: str | None, problems: list[str]) -> float:
    if raw is None or raw == "":
        return PING_INTERVAL
    try:
        value = float(raw)
    except ValueError:
        problems.append(f"{ENV_PING_INTERVAL} must be a number, got {raw!r}")
        return PING_INTERVAL
    if value <= 0:
        problems.append(f"{ENV_PING_INTERVAL} must be > 0")
    return value


def _parse_attempts(raw: str | None, problems: list[str]) -> int:
    if raw is None or raw == "":
        return MAX_PING_ATTEMPTS
    try:
        value = int(raw)
    except ValueError:
        problems.append(f"{ENV_MAX_PING_ATTEMPTS} must be an integer, got {raw!r}")
        return MAX_PING_ATTEMPTS
    if value < 0:
        problems.append(f"{ENV_MAX_PING_ATTEMPTS} must be >= 0")
    return value


def _parse_command(
    key: str, raw: str | None, default: str, problems: list[str]
) -> tuple[str, ...]:
    try:
        return tuple(split_cmd(raw if raw else default))
    except ValueError as err:
        problems.append(f"{key}: {err}")
        return tuple(split_cmd(default))


def load_config(
    env: Mapping[str, str] | None = None, env_file: Path | None = None
) -> BootstrapConfig:
    """Build the config from env_file (defaults) overlaid by env.

    env defaults to os.environ. Raises ConfigError listing every problem.
    """
    merged: dict[str, str] = {}
    if env_file is not None:
        try:
            merged.update(read_env_file(env_file))
        except OSError as err:
            raise ConfigError([f"could not read env file {env_file}: {err}"]) from err
    merged.update(os.environ if env is None else env)

    problems: list[str] = []
    creds: dict[str, str] = {}
    for key in (ENV_DB, ENV_USER, ENV_PASS, ENV_ROOT_PASS):
        value = merged.get(key, "")
        if not value:
            problems.append(f"{key} is missing or empty")
        elif "\x00" in value:
            problems.append(f"{key} contains a NUL byte")
        creds[key] = value

    interval = _parse_interval(merged.get(ENV_PING_INTERVAL), problems)
    attempts = _parse_attempts(merged.get(ENV_MAX_PING_ATTEMPTS), problems)
    start = _parse_command(ENV_START_CMD, merged.get(ENV_START_CMD), START_CMD, problems)
    server = _parse_command(ENV_SERVER_CMD, merged.get(ENV_SERVER_CMD), SERVER_CMD, problems)

    if problems:
        raise ConfigError(problems)

    return BootstrapConfig(
        database=creds[ENV_DB],
        user=creds[ENV_USER],
        password=creds[ENV_PASS],
        root_password=creds[ENV_ROOT_PASS],
        ping_interval=interval,
        max_ping_attempts=attempts,
        start_command=start,
        server_command=server,
    )
