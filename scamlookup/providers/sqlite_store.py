# file: scamlookup/providers/sqlite_store.py
"""
SQLite-backed provider registry.

Each record is stored as validated JSON next to the columns the read path
filters on. An autoincrement `position` column keeps insertion order stable
across restarts.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from scamlookup.core.models import ProviderConfig
from scamlookup.providers.registry import ProviderRegistry, apply_changes


class SQLiteProviderRegistry(ProviderRegistry):
    def __init__(self, path: Path) -> None:
        self.path = path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def _init_db(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS providers (
                    position INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    lookup_type TEXT NOT NULL,
                    enabled INTEGER NOT NULL,
                    config_json TEXT NOT NULL
                );
                """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_providers_type ON providers(lookup_type, enabled);"
            )

    @staticmethod
    def _row_to_config(config_json: str) -> ProviderConfig:
        return ProviderConfig.model_validate(json.loads(config_json))

    @staticmethod
    def _to_json(config: ProviderConfig) -> str:
        return json.dumps(config.model_dump(), ensure_ascii=False, separators=(",", ":"))

    def find_enabled(self, lookup_type: str) -> list[ProviderConfig]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT config_json FROM providers WHERE lookup_type = ? AND enabled = 1 "
                "ORDER BY position",
                (lookup_type,),
            ).fetchall()
        return [self._row_to_config(r[0]) for r in rows]

    def get(self, provider_id: str) -> ProviderConfig | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT config_json FROM providers WHERE id = ?", (provider_id,)
            ).fetchone()
        return None if row is None else self._row_to_config(row[0])

    def list_all(self) -> list[ProviderConfig]:
        with self._connect() as conn:
            rows = conn.execute("SELECT config_json FROM providers ORDER BY position").fetchall()
        return [self._row_to_config(r[0]) for r in rows]

    def create(self, config: ProviderConfig) -> ProviderConfig:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO providers(id, lookup_type, enabled, config_json) "
                    "VALUES (?, ?, ?, ?)",
                    (config.id, config.lookup_type, int(config.enabled), self._to_json(config)),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Provider id already exists: {config.id!r}") from exc
        return config

    def update(self, provider_id: str, **changes: Any) -> ProviderConfig | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT config_json FROM providers WHERE id = ?", (provider_id,)
            ).fetchone()
            if row is None:
                return None
            updated = apply_changes(self._row_to_config(row[0]), changes)
            conn.execute(
                "UPDATE providers SET enabled = ?, config_json = ? WHERE id = ?",
                (int(updated.enabled), self._to_json(updated), provider_id),
            )
        return updated

    def delete(self, provider_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM providers WHERE id = ?", (provider_id,))
            return bool(cur.rowcount)
