"""Tests for configuration helpers."""

from uuid import uuid4

from ckd_tracker.config import parse_subject_ids


def test_parse_subject_ids_allows_all_by_default() -> None:
    assert parse_subject_ids(None) is None
    assert parse_subject_ids("") is None
    assert parse_subject_ids(" * ") is None


def test_parse_subject_ids_skips_invalid_chunks() -> None:
    first, second = uuid4(), uuid4()

    parsed = parse_subject_ids(f"{first}, not-a-uuid,,{second}")

    assert parsed == {first, second}


def test_parse_subject_ids_with_only_invalid_values() -> None:
    assert parse_subject_ids("abc,def") is None
