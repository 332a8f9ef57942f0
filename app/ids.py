import logging
import secrets
import string

from app.errors import IdAllocationError

log = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits


def random_token(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def mint_delete_key(length: int = 16) -> str:
    """Delete keys only need to be unguessable, so no uniqueness probe is made."""
    return random_token(length)


class IdAllocator:
    """Issues short object ids that are not yet used by any stored header.

    The probe and the later insert are separate store calls, so two allocators
    can still hand out the same id. The header insert rejects such a duplicate
    and the caller allocates again.
    """

    def __init__(self, store, *, length: int = 5, max_attempts: int = 100):
        self.store = store
        self.length = length
        self.max_attempts = max_attempts

    def allocate(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            candidate = random_token(self.length)
            if self.store.count_headers(candidate) == 0:
                return candidate
            log.debug("Id %s already taken (attempt %d)", candidate, attempt)
        raise IdAllocationError(f"no free id after {self.max_attempts} attempts")
