"""Module entry point: granular bootstrap subcommands."""

from __future__ import annotations

import json
import sys
from pathlib import Path

from modules.utils import init_logging, status_pass, status_fail
from . import admin
from .admin import SOCKET_AUTH
from .bootstrap import BootstrapState, detect_root_auth, run_bootstrap, shutdown_engine
from .settings import ConfigError, load_config

USAGE = "usage: [--env-file=PATH] bootstrap|ping|probe|shutdown|config"


def _probe(config) -> int:
    state = BootstrapState(config=config)
    if not detect_root_auth(state):
        status_fail("root rejected socket and password auth")
        return 1
    if state.root_password_was_set:
        status_pass("root password set (password auth)")
    else:
        status_pass("root password not set (socket auth)")
    return 0


def main(argv: list[str] | None = None) -> int:
    init_logging(None)
    if argv is None:
        argv = sys.argv[1:]
    flags = [a for a in argv if a.startswith("--")]
    args = [a for a in argv if not a.startswith("--")]
    if len(args) != 1:
        status_fail(USAGE)
        return 2
    env_file = None
    for f in flags:
        if f.startswith("--env-file="):
            env_file = Path(f.split("=", 1)[1])
            continue
        status_fail(f"unknown flag {f}")
        return 2
    try:
        config = load_config(env_file=env_file)
    except ConfigError as err:
        for problem in err.problems:
            status_fail(problem)
        return 2
    cmd = args[0]
    if cmd == "config":
        print(json.dumps(config.redacted(), indent=2))
        return 0
    if cmd == "bootstrap":
        result = run_bootstrap(config)
        if result.ok:
            return 0
        return 1
    if cmd == "ping":
        if admin.ping(SOCKET_AUTH, config):
            status_pass("engine answered ping")
            return 0
        status_fail("engine did not answer ping")
        return 1
    if cmd == "probe":
        return _probe(config)
    if cmd == "shutdown":
        if shutdown_engine(BootstrapState(config=config)):
            status_pass("engine shut down")
            return 0
        status_fail("engine shutdown failed")
        return 1
    status_fail("unknown subcommand")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
