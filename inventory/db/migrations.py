"""Lightweight schema migrations for SQLite databases."""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

ACTIVITY_LOG_INDEXES: dict[str, str] = {
    "ix_activity_logs_created_at": "created_at",
    "ix_activity_logs_actor_user_id": "actor_user_id",
    "ix_activity_logs_action": "action",
}

_CREATE_ACTIVITY_LOGS = """
    CREATE TABLE activity_logs (
        id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
        actor_user_id INTEGER,
        actor_identifier VARCHAR(128) NOT NULL,
        action VARCHAR(64) NOT NULL,
        description TEXT NOT NULL,
        ip_address VARCHAR(64),
        created_at DATETIME NOT NULL
    )
"""

_CREATE_USERS = """
    CREATE TABLE users (
        id INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT,
        username VARCHAR(128) NOT NULL,
        full_name VARCHAR(255) NOT NULL DEFAULT '',
        password_hash VARCHAR(255) NOT NULL,
        role VARCHAR(17) NOT NULL,
        email VARCHAR(255),
        is_active BOOLEAN NOT NULL DEFAULT 1,
        created_at DATETIME NOT NULL,
        last_login_at DATETIME
    )
"""


def _sqlite_column_names(connection: Connection, table_name: str) -> set[str]:
    """Return column names for a SQLite table using PRAGMA table_info."""
    rows = connection.execute(text(f"PRAGMA table_info({table_name});")).mappings().all()
    return {str(row["name"]) for row in rows}


def _sqlite_index_names(connection: Connection, table_name: str) -> set[str]:
    """Return index names for a SQLite table using PRAGMA index_list."""
    rows = connection.execute(text(f"PRAGMA index_list({table_name});")).mappings().all()
    return {str(row["name"]) for row in rows}


def _uses_autoincrement(connection: Connection, table_name: str) -> bool:
    """Return whether the table's rowid key is declared AUTOINCREMENT."""
    ddl = connection.execute(
        text("SELECT sql FROM sqlite_master WHERE type='table' AND name=:name"),
        {"name": table_name},
    ).scalar()
    return "AUTOINCREMENT" in str(ddl or "").upper()


def _drop_table_indexes(connection: Connection, table_name: str) -> None:
    for index_name in _sqlite_index_names(connection, table_name):
        if not index_name.startswith("sqlite_autoindex"):
            connection.execute(text(f"DROP INDEX IF EXISTS {index_name}"))


def _rebuild_legacy_activity_logs(connection: Connection, legacy_columns: set[str]) -> None:
    """Move a ``user_id``-keyed activity table onto the current layout.

    The legacy table declared ``user_id`` NOT NULL with a foreign key to users,
    which would block system events and break rows of removed users.
    """
    ip_select = "legacy.ip_address" if "ip_address" in legacy_columns else "NULL"
    connection.execute(text("ALTER TABLE activity_logs RENAME TO activity_logs_legacy"))
    _drop_table_indexes(connection, "activity_logs_legacy")
    connection.execute(text(_CREATE_ACTIVITY_LOGS))
    connection.execute(
        text(
            f"""
            INSERT INTO activity_logs (id, actor_user_id, actor_identifier, action, description, ip_address, created_at)
            SELECT legacy.id,
                   legacy.user_id,
                   COALESCE(users.username, 'system'),
                   legacy.action,
                   COALESCE(legacy.description, ''),
                   {ip_select},
                   legacy.created_at
            FROM activity_logs_legacy AS legacy
            LEFT JOIN users ON users.id = legacy.user_id
            """
        )
    )
    connection.execute(text("DROP TABLE activity_logs_legacy"))
    logger.info("[MIGRATION] Rebuilt legacy activity_logs table.")


def _rebuild_with_autoincrement(connection: Connection, table_name: str, create_sql: str) -> None:
    """Recreate ``table_name`` from ``create_sql`` keeping every row and id.

    Without AUTOINCREMENT SQLite hands the highest deleted id to the next
    insert.
    """
    legacy_name = f"{table_name}_legacy"
    connection.execute(text(f"ALTER TABLE {table_name} RENAME TO {legacy_name}"))
    _drop_table_indexes(connection, legacy_name)
    connection.execute(text(create_sql))
    shared = sorted(_sqlite_column_names(connection, legacy_name) & _sqlite_column_names(connection, table_name))
    column_list = ", ".join(shared)
    connection.execute(text(f"INSERT INTO {table_name} ({column_list}) SELECT {column_list} FROM {legacy_name}"))
    connection.execute(text(f"DROP TABLE {legacy_name}"))
    logger.info("[MIGRATION] Rebuilt %s table with AUTOINCREMENT ids.", table_name)


def _reserve_referenced_user_ids(connection: Connection) -> None:
    """Keep user ids that activity history still references out of reuse."""
    highest = connection.execute(
        text(
            """
            SELECT MAX(seq) FROM (
                SELECT MAX(id) AS seq FROM users
                UNION ALL
                SELECT MAX(actor_user_id) FROM activity_logs
            )
            """
        )
    ).scalar()
    if highest is None:
        return
    current = connection.execute(text("SELECT seq FROM sqlite_sequence WHERE name = 'users'")).scalar()
    if current is not None and current >= highest:
        return
    connection.execute(text("DELETE FROM sqlite_sequence WHERE name = 'users'"))
    connection.execute(text("INSERT INTO sqlite_sequence (name, seq) VALUES ('users', :seq)"), {"seq": int(highest)})


def ensure_sqlite_schema(engine: Engine) -> None:
    """Apply lightweight schema updates for legacy SQLite databases."""
    if engine.dialect.name != "sqlite":
        return

    with engine.begin() as connection:
        table_rows = connection.execute(text("SELECT name FROM sqlite_master WHERE type='table';")).all()
        table_names: set[str] = {str(row[0]) for row in table_rows}

        if "users" in table_names:
            user_columns = _sqlite_column_names(connection, "users")
            if "full_name" not in user_columns:
                connection.execute(text("ALTER TABLE users ADD COLUMN full_name VARCHAR(255) NOT NULL DEFAULT ''"))

        if "activity_logs" not in table_names:
            connection.execute(text(_CREATE_ACTIVITY_LOGS))
        else:
            activity_columns = _sqlite_column_names(connection, "activity_logs")
            if "actor_user_id" not in activity_columns and "user_id" in activity_columns:
                _rebuild_legacy_activity_logs(connection, activity_columns)
            else:
                if "ip_address" not in activity_columns:
                    connection.execute(text("ALTER TABLE activity_logs ADD COLUMN ip_address VARCHAR(64)"))
                if not _uses_autoincrement(connection, "activity_logs"):
                    _rebuild_with_autoincrement(connection, "activity_logs", _CREATE_ACTIVITY_LOGS)

        if "users" in table_names:
            if not _uses_autoincrement(connection, "users"):
                _rebuild_with_autoincrement(connection, "users", _CREATE_USERS)
                connection.execute(text("CREATE UNIQUE INDEX IF NOT EXISTS ix_users_username ON users (username)"))
            _reserve_referenced_user_ids(connection)

        existing_indexes = _sqlite_index_names(connection, "activity_logs")
        for index_name, column in ACTIVITY_LOG_INDEXES.items():
            if index_name not in existing_indexes:
                connection.execute(text(f"CREATE INDEX {index_name} ON activity_logs ({column})"))
