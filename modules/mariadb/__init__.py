"""MariaDB container bootstrap package.

Submodules:
- settings: validated configuration loaded once from the environment
- sql: SQL statement builders and quoting
- admin: mariadb/mysqladmin CLI wrappers
- bootstrap: ordered provisioning steps
- handoff: exec of the foreground server (PID 1)
"""

# Intentionally minimal; logic lives in submodules and __main__.
