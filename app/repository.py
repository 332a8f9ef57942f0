import sqlite3
from contextlib import contextmanager
from typing import Protocol, Sequence

from app.errors import DuplicateObjectId, StoreError
from app.models import Chunk, Header

HEADER_COLUMNS = (
    "id",
    "delete_key",
    "content_type",
    "file_extension",
    "content_length",
    "uploaded_at",
    "total_chunks",
)


class ObjectStore(Protocol):
    """Persistence the object service relies on.

    Each call is atomic on its own; nothing groups calls into a transaction.
    """

    def insert_header(self, header: Header) -> None: ...

    def insert_chunks(self, chunks: Sequence[Chunk]) -> None: ...

    def find_header(self, object_id: str) -> Header | None: ...

    def find_chunks(self, parent_id: str) -> list[Chunk]: ...

    def count_headers(self, object_id: str) -> int: ...

    def delete_header(self, object_id: str) -> int: ...

    def delete_chunks(self, parent_id: str) -> int: ...


class ObjectRepository:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open database: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def init(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS headers (
                    id TEXT PRIMARY KEY,
                    delete_key TEXT NOT NULL,
                    content_type TEXT NOT NULL,
                    file_extension TEXT NOT NULL,
                    content_length INTEGER NOT NULL,
                    uploaded_at INTEGER NOT NULL,
                    total_chunks INTEGER NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    parent_id TEXT NOT NULL,
                    chunk_index INTEGER NOT NULL,
                    data BLOB NOT NULL,
                    PRIMARY KEY (parent_id, chunk_index)
                );
                """
            )

    def insert_header(self, header: Header) -> None:
        with self._connect() as conn:
            try:
                conn.execute(
                    f"""
                    INSERT INTO headers({", ".join(HEADER_COLUMNS)})
                    VALUES({", ".join("?" for _ in HEADER_COLUMNS)})
                    """,
                    tuple(getattr(header, column) for column in HEADER_COLUMNS),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateObjectId(f"object id {header.id} already exists") from exc

    def insert_chunks(self, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return
        with self._connect() as conn:
            conn.executemany(
                "INSERT INTO chunks(parent_id, chunk_index, data) VALUES(?, ?, ?)",
                [(chunk.parent_id, chunk.index, chunk.data) for chunk in chunks],
            )

    def find_header(self, object_id: str) -> Header | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM headers WHERE id = ?", (object_id,)).fetchone()
        return Header(**dict(row)) if row else None

    def find_chunks(self, parent_id: str) -> list[Chunk]:
        # No ORDER BY: callers sort by index.
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT parent_id, chunk_index, data FROM chunks WHERE parent_id = ?",
                (parent_id,),
            ).fetchall()
        return [
            Chunk(parent_id=row["parent_id"], index=row["chunk_index"], data=bytes(row["data"]))
            for row in rows
        ]

    def count_headers(self, object_id: str) -> int:
        with self._connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM headers WHERE id = ?", (object_id,)
            ).fetchone()[0]

    def delete_header(self, object_id: str) -> int:
        with self._connect() as conn:
            return conn.execute("DELETE FROM headers WHERE id = ?", (object_id,)).rowcount

    def delete_chunks(self, parent_id: str) -> int:
        with self._connect() as conn:
            return conn.execute("DELETE FROM chunks WHERE parent_id = ?", (parent_id,)).rowcount
