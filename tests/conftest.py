import pytest

from app.config import Settings
from app.errors import DuplicateObjectId, StoreError
from app.service import ObjectService


class InMemoryStore:
    """ObjectStore fake that records calls and can be told to fail."""

    def __init__(self, *, reverse_chunks: bool = False):
        self.headers = {}
        self.chunks = {}
        self.calls = []
        self.fail_on = set()
        self.reverse_chunks = reverse_chunks

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise StoreError(f"{name} failed")

    def insert_header(self, header):
        self._record("insert_header")
        if header.id in self.headers:
            raise DuplicateObjectId(header.id)
        self.headers[header.id] = header

    def insert_chunks(self, chunks):
        self._record("insert_chunks")
        for chunk in chunks:
            self.chunks.setdefault(chunk.parent_id, []).append(chunk)

    def find_header(self, object_id):
        self._record("find_header")
        return self.headers.get(object_id)

    def find_chunks(self, parent_id):
        self._record("find_chunks")
        found = list(self.chunks.get(parent_id, []))
        if self.reverse_chunks:
            found.reverse()
        return found

    def count_headers(self, object_id):
        self._record("count_headers")
        return 1 if object_id in self.headers else 0

    def delete_header(self, object_id):
        self._record("delete_header")
        return 1 if self.headers.pop(object_id, None) else 0

    def delete_chunks(self, parent_id):
        self._record("delete_chunks")
        return len(self.chunks.pop(parent_id, []))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        upload_secret="test-secret",
        database_path=str(tmp_path / "objects.db"),
        max_chunk_size=15,
        max_upload_size_bytes=1000,
    )


@pytest.fixture
def store():
    return InMemoryStore(reverse_chunks=True)


@pytest.fixture
def service(store, settings):
    return ObjectService(store, settings, clock=lambda: 1_700_000_000_000)


@pytest.fixture
def upload(service):
    def _upload(payload: bytes, filename: str = "photo.png", content_type: str = "image/png"):
        return service.put(
            payload, filename=filename, content_type=content_type, auth_token="test-secret"
        )

    return _upload
