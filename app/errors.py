"""Errors raised by the object service, each mapped to a wire code and status."""


class ObjectStoreError(Exception):
    code = "error"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthorized(ObjectStoreError):
    code = "unauthorized"
    status_code = 401


class InvalidDeleteKey(ObjectStoreError):
    code = "invalid_delete_key"
    status_code = 403


class NotFound(ObjectStoreError):
    code = "not_found"
    status_code = 404


class PayloadTooLarge(ObjectStoreError):
    code = "payload_too_large"
    status_code = 413


class NoChunksFound(ObjectStoreError):
    code = "no_chunks_found"


class CorruptObjectError(ObjectStoreError):
    code = "corrupt_object"


class StoreError(ObjectStoreError):
    """The backing database failed a call."""

    code = "store_error"


class DuplicateObjectId(StoreError):
    pass


class PartialWriteError(ObjectStoreError):
    """Header was written but its chunks were not."""

    code = "partial_write"


class PartialDeleteError(ObjectStoreError):
    """Header was removed but its chunks were not."""

    code = "partial_delete"


class IdAllocationError(ObjectStoreError):
    code = "id_allocation_failed"
