"""MariaDB administrative CLI wrappers (mariadb, mysqladmin, service start).

All calls go over the local socket as the root account. SQL text is fed on
stdin and a root password, when in use, reaches the child through MYSQL_PWD;
neither ever appears on argv.
Wrappers return results instead of raising; logs never carry credentials.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from dataclasses import dataclass
from typing import Sequence

from config import CLI_TIMEOUT, ROOT_USER
from modules.utils import log, redact
from .settings import BootstrapConfig


@dataclass(frozen=True)
class RootAuth:
    """How administrative connections authenticate.

    password=None means socket-local authentication with no password.
    """

    password: str | None = None

    @property
    def mode(self) -> str:
        return "socket" if self.password is None else "password"


SOCKET_AUTH = RootAuth()


def _child_env(auth: RootAuth) -> dict[str, str]:
    env = os.environ.copy()
    env.pop("MYSQL_PWD", None)
    if auth.password is not None:
        env["MYSQL_PWD"] = auth.password
    return env


def _run(
    args: Sequence[str],
    env: dict[str, str],
    input_text: str | None = None,
    timeout: int = CLI_TIMEOUT,
) -> tuple[int, str, str]:
    try:
        proc = subprocess.run(
            list(args),
            input=input_text,
            text=True,
            capture_output=True,
            timeout=timeout,
            env=env,
            encoding="utf-8",
            errors="replace",
        )
    except subprocess.TimeoutExpired:
        return 124, "", f"timeout after {timeout}s"
    except OSError as err:
        return 127, "", str(err)
    return proc.returncode, (proc.stdout or ""), (proc.stderr or "")


def mysql_try(sql: str, auth: RootAuth, config: BootstrapConfig) -> tuple[int, str, str]:
    args = [
        config.mysql_bin,
        "-u",
        ROOT_USER,
        "--batch",
        "--skip-column-names",
    ]
    return _run(args, _child_env(auth), input_text=sql)


def run_mysql(sql: str, auth: RootAuth, config: BootstrapConfig) -> bool:
    t0 = time.monotonic()
    rc, out, err = mysql_try(sql, auth, config)
    dt = time.monotonic() - t0
    shown = redact(sql, config.secrets)
    msg = (
        f"SQL[{auth.mode}]: {shown}\nEXIT: {rc} ({dt:.1f}s)\n"
        f"STDOUT: {redact(out.strip(), config.secrets)}\n"
        f"STDERR: {redact(err.strip(), config.secrets)}"
    )
    if rc == 0:
        log(f"PASS: {msg}")
        return True
    logging.error(msg)
    return False


def _mysqladmin(command: str, auth: RootAuth, config: BootstrapConfig) -> tuple[int, str, str]:
    args = [config.mysqladmin_bin, "-u", ROOT_USER, command]
    return _run(args, _child_env(auth))


def ping(auth: RootAuth, config: BootstrapConfig) -> bool:
    # mysqladmin ping exits 0 whenever the server answers, even on access denied
    rc, _, err = _mysqladmin("ping", auth, config)
    if rc == 0:
        return True
    logging.debug("ping exit=%s: %s", rc, redact(err.strip(), config.secrets))
    return False


def shutdown(auth: RootAuth, config: BootstrapConfig) -> bool:
    rc, _, err = _mysqladmin("shutdown", auth, config)
    if rc == 0:
        log(f"PASS: mysqladmin shutdown [{auth.mode}]")
        return True
    logging.error(
        "mysqladmin shutdown [%s] exit=%s\nSTDERR: %s",
        auth.mode,
        rc,
        redact(err.strip(), config.secrets),
    )
    return False


def start_engine(config: BootstrapConfig) -> bool:
    rc, out, err = _run(config.start_command, os.environ.copy())
    cmd = " ".join(config.start_command)
    if rc == 0:
        log(f"PASS: {cmd}\nSTDOUT: {out.strip()}")
        return True
    logging.error("%s exit=%s\nSTDOUT: %s\nSTDERR: %s", cmd, rc, out.strip(), err.strip())
    return False
