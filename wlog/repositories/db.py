# Rev 0.2.0

"""SQLite connection & migration runner (Rev 0.2.0)
- WAL mode, foreign_keys=ON, busy_timeout for writer serialization
- Applies SQL files in wlog/data/migrations in lexical order
- Tracks applied files in schema_migrations(filename, sha256, applied_at_utc)
- transaction() is the atomic boundary for every mutation; nested calls join the outer unit
- one RLock per Database serializes threads sharing the connection
"""
from __future__ import annotations
import hashlib
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

from wlog.models.errors import ConstraintViolation, StorageFailure, WlogError
from wlog.utils.logging_setup import get_logger
from wlog.utils.paths import DEFAULT_DB_PATH, MIGRATIONS_DIR


_log = get_logger(__name__)


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Map driver errors onto ConstraintViolation / StorageFailure."""
    try:
        yield
    except WlogError:
        raise
    except sqlite3.IntegrityError as exc:
        raise ConstraintViolation(f"{action}: {exc}") from exc
    except sqlite3.Error as exc:
        _log.error("%s failed: %s", action, exc)
        raise StorageFailure(f"{action}: {exc}") from exc


class Database:
    def __init__(self, path: Path | str = DEFAULT_DB_PATH) -> None:
        self.path = str(path)
        self._lock = threading.RLock()
        self._depth = 0
        if self.path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        with translate_errors("open database"):
            # autocommit; transactions are opened explicitly by transaction()
            self.conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys=ON;")
            self.conn.execute("PRAGMA journal_mode=WAL;")
            self.conn.execute("PRAGMA busy_timeout=5000;")
            self.conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_migrations ("
                "filename TEXT PRIMARY KEY, sha256 TEXT NOT NULL, applied_at_utc TEXT NOT NULL)"
            )
        _log.info("SQLite open %s", self.path)

    def close(self) -> None:
        try:
            with self._lock:
                self.conn.close()
        except sqlite3.Error:
            _log.warning("Error while closing %s", self.path, exc_info=True)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------- transactions ----------

    @contextmanager
    def transaction(self, action: str = "transaction") -> Iterator[sqlite3.Connection]:
        """BEGIN IMMEDIATE … COMMIT; any exception rolls the whole unit back."""
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self.conn
                finally:
                    self._depth -= 1
                return
            with translate_errors(action):
                self.conn.execute("BEGIN IMMEDIATE;")
                self._depth = 1
                try:
                    yield self.conn
                except BaseException:
                    self._rollback()
                    raise
                else:
                    try:
                        self.conn.execute("COMMIT;")
                    except BaseException:
                        self._rollback()
                        raise
                finally:
                    self._depth = 0

    def _rollback(self) -> None:
        # some engine errors already rolled the transaction back
        if self.conn.in_transaction:
            self.conn.execute("ROLLBACK;")

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock, translate_errors("query"):
            return self.conn.execute(sql, params)

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        with self._lock, translate_errors("query"):
            return self.conn.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._lock, translate_errors("query"):
            return self.conn.execute(sql, params).fetchall()

    # ---------- migrations ----------

    def applied(self) -> dict[str, str]:
        rows = self.fetchall("SELECT filename, sha256 FROM schema_migrations")
        return {r[0]: r[1] for r in rows}

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR, *, strict: bool = False) -> list[str]:
        applied = self.applied()
        done: list[str] = []
        for p in sorted(Path(migrations_dir).glob("*.sql")):
            sql = p.read_text(encoding="utf-8")
            digest = _sha256(sql)
            if p.name in applied:
                if applied[p.name] != digest:
                    msg = f"Hash changed for already applied migration {p.name}"
                    if strict:
                        raise StorageFailure(msg)
                    _log.warning(msg)
                continue
            _log.info("Applying migration %s", p.name)
            with self.transaction(f"migration {p.name}") as con:
                # executescript would commit the open transaction, so run statement by statement
                for statement in _split_statements(sql):
                    con.execute(statement)
                con.execute(
                    "INSERT INTO schema_migrations(filename, sha256, applied_at_utc) VALUES(?, ?, ?)",
                    (p.name, digest, datetime.now(timezone.utc).isoformat(timespec="seconds")),
                )
            done.append(p.name)
        return done


def _split_statements(sql: str) -> list[str]:
    out: list[str] = []
    buf = ""
    for line in sql.splitlines(keepends=True):
        if line.lstrip().startswith("--"):
            continue
        buf += line
        if sqlite3.complete_statement(buf):
            if buf.strip():
                out.append(buf.strip())
            buf = ""
    if buf.strip():
        out.append(buf.strip())
    return out
