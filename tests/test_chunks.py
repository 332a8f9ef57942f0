import pytest

from app.chunks import build_chunks, check_contiguous, join, split
from app.errors import CorruptObjectError
from app.models import Chunk


def test_split_forty_bytes_into_three_chunks():
    payload = bytes(range(40))
    pieces = split(payload, 15)
    assert [len(piece) for piece in pieces] == [15, 15, 10]
    assert b"".join(pieces) == payload


def test_split_empty_payload_gives_no_chunks():
    assert split(b"", 15) == []


def test_split_exact_multiple_has_no_short_tail():
    assert [len(piece) for piece in split(b"a" * 30, 15)] == [15, 15]


def test_split_rejects_non_positive_chunk_size():
    with pytest.raises(ValueError):
        split(b"data", 0)


@pytest.mark.parametrize("size,chunk_size", [(1, 1), (7, 3), (100, 15), (14, 15), (1024, 1000)])
def test_join_restores_split_payload(size, chunk_size):
    payload = bytes(i % 251 for i in range(size))
    chunks = build_chunks("abcde", split(payload, chunk_size))
    assert len(chunks) == -(-size // chunk_size)
    assert join(reversed(chunks)) == payload


def test_build_chunks_numbers_from_one():
    chunks = build_chunks("abcde", [b"x", b"y", b"z"])
    assert [chunk.index for chunk in chunks] == [1, 2, 3]
    assert {chunk.parent_id for chunk in chunks} == {"abcde"}


def test_join_orders_by_index_not_arrival():
    chunks = [
        Chunk(parent_id="p", index=3, data=b"c"),
        Chunk(parent_id="p", index=1, data=b"a"),
        Chunk(parent_id="p", index=2, data=b"b"),
    ]
    assert join(chunks) == b"abc"


def test_join_tolerates_gaps():
    chunks = [Chunk(parent_id="p", index=1, data=b"a"), Chunk(parent_id="p", index=3, data=b"c")]
    assert join(chunks) == b"ac"


def test_check_contiguous_accepts_complete_set():
    chunks = build_chunks("p", [b"ab", b"c"])
    check_contiguous(chunks, total_chunks=2, content_length=3)


def test_check_contiguous_rejects_gap():
    chunks = [Chunk(parent_id="p", index=1, data=b"a"), Chunk(parent_id="p", index=3, data=b"c")]
    with pytest.raises(CorruptObjectError):
        check_contiguous(chunks, total_chunks=2, content_length=2)


def test_check_contiguous_rejects_duplicate_index():
    chunks = [Chunk(parent_id="p", index=1, data=b"a"), Chunk(parent_id="p", index=1, data=b"a")]
    with pytest.raises(CorruptObjectError):
        check_contiguous(chunks, total_chunks=2, content_length=2)


def test_check_contiguous_rejects_length_mismatch():
    chunks = build_chunks("p", [b"ab", b"c"])
    with pytest.raises(CorruptObjectError):
        check_contiguous(chunks, total_chunks=2, content_length=4)
