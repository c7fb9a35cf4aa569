#!/usr/bin/env python3
"""Container entrypoint for the MariaDB service.

Inputs: SQL_DB, SQL_USER, SQL_PW, SQL_ROOT_PW from the environment or an
--env-file. Side effects: starts MariaDB in service mode, ensures the
database, the application user and its grant, sets the root password on
first boot, shuts the service down, then execs the foreground server so it
runs as PID 1.
"""
import sys
from pathlib import Path

from modules.utils import init_logging, log, status_pass, status_fail
from modules.mariadb.bootstrap import run_bootstrap
from modules.mariadb.handoff import exec_server
from modules.mariadb.settings import ConfigError, load_config

# ─── CONFIG ──────────────────────────────────────────────────────────────
FLAG_ENV_FILE = "--env-file"
FLAG_NO_EXEC = "--no-exec"
USAGE = f"usage: dbinit.py [{FLAG_ENV_FILE}=PATH] [{FLAG_NO_EXEC}]"

EXIT_OK = 0
EXIT_STEP_FAILED = 1
EXIT_USAGE = 2


# ─── CLI ──────────────────────────────────────────────────────────────
def parse_args(argv: list[str]) -> tuple[Path | None, bool] | None:
    env_file = None
    no_exec = False
    for a in argv:
        if a.startswith(f"{FLAG_ENV_FILE}="):
            env_file = Path(a.split("=", 1)[1])
            continue
        if a == FLAG_NO_EXEC:
            no_exec = True
            continue
        return None
    return env_file, no_exec


def main(argv: list[str]) -> int:
    rid = init_logging(None)
    parsed = parse_args(argv)
    if parsed is None:
        status_fail(USAGE)
        return EXIT_USAGE
    env_file, no_exec = parsed
    try:
        config = load_config(env_file=env_file)
    except ConfigError as err:
        for problem in err.problems:
            status_fail(problem)
        return EXIT_USAGE
    log(f"dbinit run_id={rid}")
    result = run_bootstrap(config)
    if not result.ok:
        return EXIT_STEP_FAILED
    status_pass(f"database {config.database} ready for {config.user}")
    if no_exec:
        return EXIT_OK
    try:
        exec_server(config)
    except OSError as err:
        status_fail(f"exec {' '.join(config.server_command)}: {err}")
        return EXIT_STEP_FAILED
    return EXIT_OK


def entrypoint() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
