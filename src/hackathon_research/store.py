"""Project store: SQLite persistence plus an in-memory variant for tests."""

from __future__ import annotations

import hashlib
import json
import sqlite3
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Protocol

from hackathon_research.errors import ConflictError, NotFoundError
from hackathon_research.models import Project

UNKNOWN_HACKATHON = "Unknown Hackathon"

# Columns an upsert never overwrites on an existing row.
_IMMUTABLE_FIELDS = {"id", "created_at"}


class ProjectStore(Protocol):
    """Single-row document store keyed by project id."""

    def find_by_id(self, project_id: str) -> Project | None: ...

    def find_by_url(self, devpost_url: str) -> Project | None: ...

    def find_by_name_and_hackathon(self, name: str, hackathon_name: str | None) -> Project | None: ...

    def insert(self, project: Project) -> Project: ...

    def update(self, project_id: str, fields: dict) -> Project: ...

    def upsert(self, project: Project, conflict_key: str = "devpost_url") -> Project: ...

    def list_unresearched(self, limit: int = 10) -> list[Project]: ...

    def list_success_stories(self, limit: int = 20) -> list[Project]: ...

    def list_projects(self, limit: int = 50) -> list[Project]: ...


def _merge(project: Project, fields: dict) -> Project:
    data = project.model_dump()
    data.update({k: v for k, v in fields.items() if k not in _IMMUTABLE_FIELDS})
    data["updated_at"] = datetime.now()
    return Project.model_validate(data)


def _hackathon_known(hackathon_name: str | None) -> bool:
    return bool(hackathon_name) and hackathon_name != UNKNOWN_HACKATHON


# ── SQLite ───────────────────────────────────────────────────────────────────

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    hackathon_name TEXT,
    devpost_url TEXT UNIQUE,
    got_funding INTEGER,
    became_startup INTEGER,
    overall_score INTEGER,
    researched_at TEXT,
    project_json TEXT NOT NULL,
    created_at TEXT DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS search_cache (
    query_hash TEXT PRIMARY KEY,
    query TEXT NOT NULL,
    response TEXT NOT NULL,
    created_at TEXT DEFAULT (datetime('now')),
    expires_at TEXT NOT NULL
);
"""


class SqliteProjectStore:
    """SQLite-backed project store and search response cache.

    One connection is shared across threads; every statement runs under a lock
    so concurrent project runs see single-row atomic writes.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    # ── Projects ─────────────────────────────────────────────────────────

    def _write(self, project: Project) -> None:
        try:
            self._conn.execute(
                "INSERT INTO projects (id, name, hackathon_name, devpost_url, got_funding, "
                "became_startup, overall_score, researched_at, project_json) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, "
                "hackathon_name = excluded.hackathon_name, devpost_url = excluded.devpost_url, "
                "got_funding = excluded.got_funding, became_startup = excluded.became_startup, "
                "overall_score = excluded.overall_score, researched_at = excluded.researched_at, "
                "project_json = excluded.project_json",
                (
                    project.id,
                    project.name,
                    project.hackathon_name,
                    project.devpost_url,
                    project.got_funding,
                    project.became_startup,
                    project.overall_score,
                    project.researched_at.isoformat() if project.researched_at else None,
                    project.model_dump_json(),
                ),
            )
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            owner = self._fetch_one("devpost_url = ?", (project.devpost_url,))
            raise ConflictError(project.devpost_url, owner.id if owner else None) from e

    def _fetch_one(self, where: str, params: tuple) -> Project | None:
        row = self._conn.execute(
            f"SELECT project_json FROM projects WHERE {where} LIMIT 1", params
        ).fetchone()
        if row is None:
            return None
        return Project.model_validate_json(row["project_json"])

    def _fetch_many(self, query: str, params: tuple) -> list[Project]:
        rows = self._conn.execute(query, params).fetchall()
        return [Project.model_validate_json(r["project_json"]) for r in rows]

    def find_by_id(self, project_id: str) -> Project | None:
        with self._lock:
            return self._fetch_one("id = ?", (project_id,))

    def find_by_url(self, devpost_url: str) -> Project | None:
        with self._lock:
            return self._fetch_one("devpost_url = ?", (devpost_url,))

    def find_by_name_and_hackathon(self, name: str, hackathon_name: str | None) -> Project | None:
        with self._lock:
            if _hackathon_known(hackathon_name):
                return self._fetch_one(
                    "lower(trim(name)) = lower(trim(?)) AND lower(trim(hackathon_name)) = lower(trim(?))",
                    (name, hackathon_name),
                )
            return self._fetch_one("lower(trim(name)) = lower(trim(?))", (name,))

    def insert(self, project: Project) -> Project:
        with self._lock:
            self._write(project)
            self._conn.commit()
        return project

    def update(self, project_id: str, fields: dict) -> Project:
        """Apply a whole field set to one row in a single transaction."""
        with self._lock:
            current = self._fetch_one("id = ?", (project_id,))
            if current is None:
                raise NotFoundError(project_id)
            merged = _merge(current, fields)
            self._write(merged)
            self._conn.commit()
        return merged

    def upsert(self, project: Project, conflict_key: str = "devpost_url") -> Project:
        column = _column(conflict_key)
        key_value = getattr(project, column)
        with self._lock:
            existing = None
            if key_value is not None:
                existing = self._fetch_one(f"{column} = ?", (key_value,))
            if existing is None:
                return self.insert(project)
            return self.update(existing.id, project.model_dump(exclude=_IMMUTABLE_FIELDS))

    def list_unresearched(self, limit: int = 10) -> list[Project]:
        with self._lock:
            return self._fetch_many(
                "SELECT project_json FROM projects WHERE researched_at IS NULL "
                "ORDER BY created_at LIMIT ?",
                (limit,),
            )

    def list_success_stories(self, limit: int = 20) -> list[Project]:
        with self._lock:
            return self._fetch_many(
                "SELECT project_json FROM projects WHERE got_funding = 1 OR became_startup = 1 "
                "ORDER BY overall_score IS NULL, overall_score DESC LIMIT ?",
                (limit,),
            )

    def list_projects(self, limit: int = 50) -> list[Project]:
        with self._lock:
            return self._fetch_many(
                "SELECT project_json FROM projects "
                "ORDER BY overall_score IS NULL, overall_score DESC, name LIMIT ?",
                (limit,),
            )

    # ── Search cache ─────────────────────────────────────────────────────

    @staticmethod
    def _query_hash(query: str) -> str:
        return hashlib.sha256(query.strip().lower().encode()).hexdigest()[:16]

    def cache_search(self, query: str, response: dict, ttl_hours: int = 24) -> None:
        expires = datetime.now() + timedelta(hours=ttl_hours)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO search_cache (query_hash, query, response, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (
                    self._query_hash(query),
                    query,
                    json.dumps(response),
                    expires.isoformat(),
                ),
            )
            self._conn.commit()

    def get_cached_search(self, query: str) -> dict | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT response, expires_at FROM search_cache WHERE query_hash = ?",
                (self._query_hash(query),),
            ).fetchone()
            if row is None:
                return None
            if datetime.fromisoformat(row["expires_at"]) < datetime.now():
                self._conn.execute(
                    "DELETE FROM search_cache WHERE query_hash = ?",
                    (self._query_hash(query),),
                )
                self._conn.commit()
                return None
        return json.loads(row["response"])


def _column(conflict_key: str) -> str:
    if conflict_key not in {"id", "devpost_url"}:
        raise ValueError(f"Unsupported conflict key: {conflict_key}")
    return conflict_key


# ── In-memory ────────────────────────────────────────────────────────────────


class InMemoryProjectStore:
    """Dict-backed store with the same semantics, for tests and dry runs."""

    def __init__(self, projects: list[Project] | None = None) -> None:
        self._rows: dict[str, Project] = {}
        self._lock = threading.RLock()
        for p in projects or []:
            self.insert(p)

    def __len__(self) -> int:
        return len(self._rows)

    def close(self) -> None:
        pass

    def find_by_id(self, project_id: str) -> Project | None:
        with self._lock:
            row = self._rows.get(project_id)
            return row.model_copy(deep=True) if row else None

    def find_by_url(self, devpost_url: str) -> Project | None:
        return self._first(lambda p: p.devpost_url == devpost_url)

    def find_by_name_and_hackathon(self, name: str, hackathon_name: str | None) -> Project | None:
        name_key = name.strip().lower()
        if _hackathon_known(hackathon_name):
            hack_key = hackathon_name.strip().lower()
            return self._first(
                lambda p: p.name.strip().lower() == name_key
                and p.hackathon_name.strip().lower() == hack_key
            )
        return self._first(lambda p: p.name.strip().lower() == name_key)

    def _first(self, predicate) -> Project | None:
        with self._lock:
            for p in self._rows.values():
                if predicate(p):
                    return p.model_copy(deep=True)
        return None

    def _check_url(self, project: Project) -> None:
        if project.devpost_url is None:
            return
        for other in self._rows.values():
            if other.id != project.id and other.devpost_url == project.devpost_url:
                raise ConflictError(project.devpost_url, other.id)

    def insert(self, project: Project) -> Project:
        with self._lock:
            self._check_url(project)
            self._rows[project.id] = project.model_copy(deep=True)
        return project

    def update(self, project_id: str, fields: dict) -> Project:
        with self._lock:
            current = self._rows.get(project_id)
            if current is None:
                raise NotFoundError(project_id)
            merged = _merge(current, fields)
            self._check_url(merged)
            self._rows[project_id] = merged
        return merged.model_copy(deep=True)

    def upsert(self, project: Project, conflict_key: str = "devpost_url") -> Project:
        key_value = getattr(project, _column(conflict_key))
        with self._lock:
            existing = None
            if key_value is not None:
                existing = self._first(lambda p: getattr(p, conflict_key) == key_value)
            if existing is None:
                return self.insert(project)
            return self.update(existing.id, project.model_dump(exclude=_IMMUTABLE_FIELDS))

    def _sorted(self, predicate, limit: int) -> list[Project]:
        with self._lock:
            rows = [p.model_copy(deep=True) for p in self._rows.values() if predicate(p)]
        rows.sort(key=lambda p: (p.overall_score is None, -(p.overall_score or 0), p.name))
        return rows[:limit]

    def list_unresearched(self, limit: int = 10) -> list[Project]:
        with self._lock:
            rows = [p.model_copy(deep=True) for p in self._rows.values() if p.researched_at is None]
        rows.sort(key=lambda p: p.created_at)
        return rows[:limit]

    def list_success_stories(self, limit: int = 20) -> list[Project]:
        return self._sorted(lambda p: bool(p.got_funding or p.became_startup), limit)

    def list_projects(self, limit: int = 50) -> list[Project]:
        return self._sorted(lambda p: True, limit)
