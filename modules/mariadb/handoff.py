"""Replace this process with the foreground database server."""

from __future__ import annotations

import logging
import os
import sys

from modules.utils import log
from .settings import BootstrapConfig


def exec_server(config: BootstrapConfig) -> None:
    """Exec the server command; returns only by raising OSError."""
    argv = list(config.server_command)
    log(f"EXEC: {' '.join(argv)}")
    for handler in logging.getLogger().handlers:
        handler.flush()
    sys.stdout.flush()
    sys.stderr.flush()
    os.execvp(argv[0], argv)
