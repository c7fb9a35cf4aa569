"""Utility helpers kept dependency-free.

- init_logging: configure console + file logging with run-id.
- status_pass/status_fail: concise console status lines (with run-id).
- log: debug-level logger for normal status lines (file-oriented).
- redact: mask secrets before text reaches a log line.
- split_cmd: parse a command string or argv sequence into argv parts.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
import shlex
from typing import Iterable, Sequence

from config import ENV_LOG_DIR, ENV_RID


_RUN_ID = ""
MASK = "******"


def _gen_run_id() -> str:
    try:
        import uuid

        return uuid.uuid4().hex[:8]
    except Exception:
        return "00000000"


def _log_dir() -> str:
    override = os.environ.get(ENV_LOG_DIR)
    if override:
        return override
    # Project root = parent of 'modules'
    root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    return os.path.join(root_dir, "log")


def init_logging(run_id: str | None = None) -> str:
    """Initialize logging with console + rotating file handlers.

    - Console: minimal, INFO+, intended for terse status only.
    - File: DEBUG+, rich format, written to log/dbinit-<rid>.log
    Returns the run-id used.
    """
    global _RUN_ID
    if _RUN_ID:
        return _RUN_ID

    rid = run_id or os.environ.get(ENV_RID) or _gen_run_id()
    _RUN_ID = rid

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    try:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        logfile = os.path.join(log_dir, f"dbinit-{rid}.log")
    except OSError:
        logfile = os.path.abspath(f"dbinit-{rid}.log")

    # Quiet any pre-existing console handlers
    for h in list(root.handlers):
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
            h.setLevel(logging.CRITICAL)

    has_file = False
    for h in root.handlers:
        if isinstance(h, RotatingFileHandler) and getattr(h, "baseFilename", "").endswith(
            os.path.basename(logfile)
        ):
            has_file = True
            break
    if not has_file:
        fh = RotatingFileHandler(logfile, maxBytes=5 * 1024 * 1024, backupCount=3)
        fh.setLevel(logging.DEBUG)
        ffmt = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        fh.setFormatter(ffmt)
        root.addHandler(fh)

    # Add a super-quiet console handler if none exist
    if not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    ):
        ch = logging.StreamHandler()
        ch.setLevel(logging.CRITICAL)
        cfmt = logging.Formatter("%(levelname)s: %(message)s")
        ch.setFormatter(cfmt)
        root.addHandler(ch)

    logging.debug("Logging initialized. run_id=%s file=%s", rid, logfile)
    os.environ[ENV_RID] = rid
    return rid


def _rid() -> str:
    return _RUN_ID or os.environ.get(ENV_RID, "--------")


def status_pass(msg: str) -> None:
    print(f"PASS: {msg} [{_rid()}]")


def status_fail(msg: str) -> None:
    print(f"FAIL: {msg} [{_rid()}]", flush=True)


def log(msg: str) -> None:
    # File-oriented normal progress; stays out of console noise.
    logging.debug(msg)


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace every non-empty secret in text with a fixed mask.

    A secret given as a quoted SQL literal keeps its quotes around the mask.
    """
    if not text:
        return text
    out = text
    # Longest first so a secret containing another is masked whole
    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        if secret[0] == "'" and secret[-1] == "'" and len(secret) >= 2:
            out = out.replace(secret, f"'{MASK}'")
            continue
        out = out.replace(secret, MASK)
    return out


def split_cmd(command: str | Sequence[str]) -> list[str]:
    """Normalize command into argv parts.
    Accepts str (parsed with shlex) or sequence of strings.
    Raises ValueError for empty or unparsable input.
    """
    if isinstance(command, str):
        text = command.strip()
        if not text:
            raise ValueError("empty command")
        return shlex.split(text)
    parts = [str(p) for p in command]
    if not parts:
        raise ValueError("empty argv list")
    return parts
