"""Shared configuration constants for dbinit.

Centralizes binary paths, environment keys and defaults used by modules.
"""

import os

MYSQL_BIN = "mariadb"
MYSQLADMIN_BIN = "mysqladmin"
START_CMD = "service mariadb start"
SERVER_CMD = "mysqld_safe"
ROOT_USER = "root"
ROOT_HOST = "localhost"
APP_USER_HOST = "%"

# Credentials supplied by the operator's .env file
ENV_DB = "SQL_DB"
ENV_USER = "SQL_USER"
ENV_PASS = "SQL_PW"
ENV_ROOT_PASS = "SQL_ROOT_PW"

# Runtime knobs
ENV_PING_INTERVAL = "DBINIT_PING_INTERVAL"
ENV_MAX_PING_ATTEMPTS = "DBINIT_MAX_PING_ATTEMPTS"
ENV_START_CMD = "DBINIT_START_CMD"
ENV_SERVER_CMD = "DBINIT_SERVER_CMD"
ENV_LOG_DIR = "DBINIT_LOG_DIR"
ENV_RID = "DBINIT_RID"

PING_INTERVAL = 1.0  # seconds
MAX_PING_ATTEMPTS = 60  # 0 = wait forever
CLI_TIMEOUT = int(os.environ.get("DBINIT_CLI_TIMEOUT", "60"))  # seconds
MIN_BARE_SECRET_LEN = 6  # shorter secrets are masked only as quoted SQL literals
