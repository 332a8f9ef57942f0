"""Put, get and delete of chunked objects on top of an ObjectStore."""

import logging
import time
from typing import Callable

from app.auth import UploadAuthorizer, delete_key_matches
from app.chunks import build_chunks, check_contiguous, join, split
from app.config import Settings
from app.errors import (
    DuplicateObjectId,
    IdAllocationError,
    InvalidDeleteKey,
    NoChunksFound,
    NotFound,
    ObjectStoreError,
    PartialDeleteError,
    PartialWriteError,
    PayloadTooLarge,
    StoreError,
    Unauthorized,
)
from app.ids import IdAllocator, mint_delete_key
from app.models import Header, StoredObject
from app.repository import ObjectStore

log = logging.getLogger(__name__)


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def file_extension(filename: str) -> str:
    """Return ``"." + last dot-separated segment``, or ``""`` when there is no dot.

    ``"archive.tar.gz"`` gives ``".gz"`` and ``"trailing."`` gives ``"."``.
    """
    segments = filename.split(".")
    if len(segments) == 1:
        return ""
    return "." + segments[-1]


def strip_extension(path_segment: str) -> str:
    """Drop a cosmetic suffix such as ``.png`` from a requested id."""
    return path_segment.split(".", 1)[0]


class ObjectService:
    def __init__(
        self,
        store: ObjectStore,
        settings: Settings,
        clock: Callable[[], int] = epoch_millis,
    ):
        self.store = store
        self.settings = settings
        self.clock = clock
        self.authorizer = UploadAuthorizer(settings.upload_secret)
        self.allocator = IdAllocator(
            store, length=settings.id_length, max_attempts=settings.max_id_attempts
        )

    def _store_call(self, action: str, func, *args):
        try:
            return func(*args)
        except ObjectStoreError:
            raise
        except Exception as exc:
            raise StoreError(f"failed to {action}: {exc}") from exc

    def put(
        self,
        payload: bytes,
        *,
        filename: str,
        content_type: str | None,
        auth_token: str | None,
    ) -> Header:
        if not self.authorizer.verify(auth_token):
            raise Unauthorized("invalid upload secret")
        if len(payload) > self.settings.max_upload_size_bytes:
            raise PayloadTooLarge(
                f"payload exceeds {self.settings.max_upload_size_bytes} bytes"
            )

        delete_key = mint_delete_key(self.settings.delete_key_length)
        extension = file_extension(filename)
        pieces = split(payload, self.settings.max_chunk_size)
        header = self._insert_header(
            delete_key=delete_key,
            content_type=content_type or "",
            file_extension=extension,
            content_length=len(payload),
            uploaded_at=self.clock(),
            total_chunks=len(pieces),
        )

        chunks = build_chunks(header.id, pieces)
        try:
            self._store_call("insert chunks", self.store.insert_chunks, chunks)
        except StoreError as exc:
            if self.settings.cleanup_partial_uploads:
                self._discard(header.id)
            raise PartialWriteError(f"chunks of {header.id} were not stored") from exc

        log.info(
            'Uploaded new file "%s" of type "%s" with total size %d (%d chunks)',
            header.id,
            header.content_type,
            header.content_length,
            header.total_chunks,
        )
        return header

    def _insert_header(self, **fields) -> Header:
        """Allocate an id and write the header, allocating again if the id was taken meanwhile."""
        for _ in range(self.settings.max_id_attempts):
            object_id = self._store_call("allocate an id", self.allocator.allocate)
            header = Header(id=object_id, **fields)
            try:
                self._store_call("insert header", self.store.insert_header, header)
            except DuplicateObjectId:
                log.warning("Id %s was taken after allocation, retrying", object_id)
                continue
            return header
        raise IdAllocationError("every allocated id collided on insert")

    def _discard(self, object_id: str) -> None:
        try:
            self.store.delete_chunks(object_id)
            self.store.delete_header(object_id)
        except Exception:
            log.exception("Cleanup of partial upload %s failed, header may be orphaned", object_id)
        else:
            log.info("Removed partial upload %s", object_id)

    def get(self, path_segment: str) -> StoredObject:
        object_id = strip_extension(path_segment)
        header = self._store_call("find header", self.store.find_header, object_id)
        if header is None:
            raise NotFound(f"no object {object_id}")

        try:
            chunks = self._store_call("find chunks", self.store.find_chunks, header.id)
        except StoreError as exc:
            raise NoChunksFound(f"chunks of {header.id} could not be read") from exc
        if not chunks and header.total_chunks > 0:
            raise NoChunksFound(f"object {header.id} has no chunks")

        if self.settings.strict_reassembly:
            check_contiguous(
                chunks, total_chunks=header.total_chunks, content_length=header.content_length
            )
        data = join(chunks)

        log.info(
            'Served file "%s" of type "%s" with total size %d (%d chunks)',
            header.id,
            header.content_type,
            header.content_length,
            header.total_chunks,
        )
        return StoredObject(header=header, data=data)

    def delete(self, object_id: str, delete_key: str) -> None:
        header = self._store_call("find header", self.store.find_header, object_id)
        if header is None:
            raise NotFound(f"no object {object_id}")
        if not delete_key_matches(header.delete_key, delete_key):
            raise InvalidDeleteKey(f"wrong delete key for {object_id}")

        headers_removed = self._store_call("delete header", self.store.delete_header, object_id)
        try:
            chunks_removed = self._store_call(
                "delete chunks", self.store.delete_chunks, object_id
            )
        except StoreError as exc:
            raise PartialDeleteError(f"chunks of {object_id} were not deleted") from exc

        log.debug("Removed %d header(s) and %d chunk(s)", headers_removed, chunks_removed)
        log.info(
            'Deleted file "%s" of type "%s" with total size %d (%d chunks)',
            header.id,
            header.content_type,
            header.content_length,
            header.total_chunks,
        )
