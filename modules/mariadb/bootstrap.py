"""Bring a MariaDB data directory to an application-ready state.

Ordered steps; each returns True/False and the first False stops the run.
Every statement issued is idempotent, so a run that stopped half way is
completed by the next container start.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from modules.utils import log, redact, status_pass, status_fail
from . import admin, sql
from .admin import RootAuth, SOCKET_AUTH
from .settings import BootstrapConfig

STEP_START = "start engine"
STEP_WAIT = "wait for engine"
STEP_DETECT = "detect root auth"
STEP_ENSURE = "ensure database and user"
STEP_ROOT_PW = "set root password"
STEP_FLUSH = "flush privileges"
STEP_SHUTDOWN = "shutdown engine"

_sleep = time.sleep


@dataclass
class BootstrapState:
    config: BootstrapConfig
    auth: RootAuth = SOCKET_AUTH
    root_password_was_set: bool | None = None
    ping_attempts: int = 0


@dataclass
class BootstrapResult:
    ok: bool
    failed_step: str | None = None
    root_password_was_set: bool | None = None
    ping_attempts: int = 0
    completed: list[str] = field(default_factory=list)


def start_engine(state: BootstrapState) -> bool:
    return admin.start_engine(state.config)


def wait_for_engine(state: BootstrapState) -> bool:
    cfg = state.config
    limit = cfg.max_ping_attempts
    while True:
        state.ping_attempts += 1
        if admin.ping(SOCKET_AUTH, cfg):
            log(f"PASS: engine answered ping after {state.ping_attempts} attempt(s)")
            return True
        if limit and state.ping_attempts >= limit:
            logging.error(
                "Engine not ready after %d ping attempts (%.1fs interval)",
                state.ping_attempts,
                cfg.ping_interval,
            )
            return False
        _sleep(cfg.ping_interval)


def detect_root_auth(state: BootstrapState) -> bool:
    cfg = state.config
    rc, _, _ = admin.mysql_try(sql.probe(), SOCKET_AUTH, cfg)
    if rc == 0:
        state.root_password_was_set = False
        state.auth = SOCKET_AUTH
        log("PASS: root accepts socket auth; root password not set yet")
        return True
    with_password = RootAuth(cfg.root_password)
    rc, _, err = admin.mysql_try(sql.probe(), with_password, cfg)
    if rc == 0:
        state.root_password_was_set = True
        state.auth = with_password
        log("PASS: root password already set; using password auth")
        return True
    logging.error(
        "root rejected both socket and password auth (exit=%s): %s",
        rc,
        redact(err.strip(), cfg.secrets),
    )
    return False


def ensure_database_and_user(state: BootstrapState) -> bool:
    cfg = state.config
    statements = [
        sql.create_database(cfg.database),
        sql.create_user(cfg.user, cfg.password),
        sql.alter_user_password(cfg.user, cfg.password),
        sql.grant_all(cfg.database, cfg.user),
    ]
    for statement in statements:
        if not admin.run_mysql(statement, state.auth, cfg):
            return False
    return True


def set_root_password(state: BootstrapState) -> bool:
    if state.root_password_was_set:
        log("SKIP: root password already set")
        return True
    cfg = state.config
    if not admin.run_mysql(sql.set_root_password(cfg.root_password), state.auth, cfg):
        return False
    state.auth = RootAuth(cfg.root_password)
    return True


def flush_privileges(state: BootstrapState) -> bool:
    return admin.run_mysql(sql.flush_privileges(), state.auth, state.config)


def shutdown_engine(state: BootstrapState) -> bool:
    cfg = state.config
    if admin.shutdown(RootAuth(cfg.root_password), cfg):
        return True
    logging.warning("Password shutdown failed; retrying with socket auth")
    return admin.shutdown(SOCKET_AUTH, cfg)


STEPS: list[tuple[str, Callable[[BootstrapState], bool]]] = [
    (STEP_START, start_engine),
    (STEP_WAIT, wait_for_engine),
    (STEP_DETECT, detect_root_auth),
    (STEP_ENSURE, ensure_database_and_user),
    (STEP_ROOT_PW, set_root_password),
    (STEP_FLUSH, flush_privileges),
    (STEP_SHUTDOWN, shutdown_engine),
]


def run_bootstrap(config: BootstrapConfig) -> BootstrapResult:
    """Run every step in order, stopping at the first failure."""
    state = BootstrapState(config=config)
    done: list[str] = []
    log(f"Bootstrap config: {config.redacted()}")
    for name, step in STEPS:
        if not step(state):
            status_fail(f"{name}; see log")
            return BootstrapResult(
                ok=False,
                failed_step=name,
                root_password_was_set=state.root_password_was_set,
                ping_attempts=state.ping_attempts,
                completed=done,
            )
        done.append(name)
        status_pass(name)
    return BootstrapResult(
        ok=True,
        root_password_was_set=state.root_password_was_set,
        ping_attempts=state.ping_attempts,
        completed=done,
    )
