"""상태 전이 서비스 테스트 (단조 전이, 키워드 원자성, 충돌 재시도)."""

import pytest

from conftest import make_record
from core.exceptions import InvalidRequest, InvalidTransition, StatusConflict
from model.image import ImageStatus, can_transition
from service import transition_service
from service.transition_service import mark_failed, mark_processing, mark_ready


class TestStateMachine:
    def test_allowed_edges(self):
        assert can_transition(ImageStatus.PENDING, ImageStatus.PROCESSING)
        assert can_transition(ImageStatus.PENDING, ImageStatus.FAILED)
        assert can_transition(ImageStatus.PROCESSING, ImageStatus.READY)
        assert can_transition(ImageStatus.PROCESSING, ImageStatus.FAILED)

    def test_no_backward_or_terminal_edges(self):
        assert not can_transition(ImageStatus.PROCESSING, ImageStatus.PENDING)
        assert not can_transition(ImageStatus.PENDING, ImageStatus.READY)
        for terminal in (ImageStatus.READY, ImageStatus.FAILED):
            assert terminal.is_terminal
            for target in ImageStatus:
                assert not can_transition(terminal, target)

    def test_rank_order(self):
        assert ImageStatus.PENDING.rank < ImageStatus.PROCESSING.rank < ImageStatus.READY.rank
        assert ImageStatus.READY.rank == ImageStatus.FAILED.rank


def test_full_lifecycle(record_store):
    record_store.create(make_record("img1"))

    assert mark_processing(record_store, "img1").status == ImageStatus.PROCESSING
    ready = mark_ready(record_store, "img1", ["outdoor", " cat ", "cat", ""])

    assert ready.status == ImageStatus.READY
    assert ready.keywords == ["cat", "outdoor"]
    assert ready.error_detail is None


def test_failed_keeps_detail_and_no_keywords(record_store):
    record_store.create(make_record("img1"))
    mark_processing(record_store, "img1")

    failed = mark_failed(record_store, "img1", "decode error")
    assert failed.status == ImageStatus.FAILED
    assert failed.error_detail == "decode error"
    assert failed.keywords is None
    assert record_store.query_by_keyword("decode") == []


def test_cannot_go_back(record_store):
    """종료 상태에서 다른 상태로 돌아갈 수 없다."""
    record_store.create(make_record("img1"))
    mark_processing(record_store, "img1")
    mark_ready(record_store, "img1", ["cat"])

    with pytest.raises(InvalidTransition):
        mark_processing(record_store, "img1")
    with pytest.raises(InvalidTransition):
        mark_failed(record_store, "img1", "late failure")
    assert record_store.get("img1").status == ImageStatus.READY


def test_ready_requires_keywords(record_store):
    record_store.create(make_record("img1"))
    mark_processing(record_store, "img1")

    with pytest.raises(InvalidRequest):
        mark_ready(record_store, "img1", ["  ", ""])
    assert record_store.get("img1").status == ImageStatus.PROCESSING


def test_ready_skipping_processing_is_rejected(record_store):
    record_store.create(make_record("img1"))
    with pytest.raises(InvalidTransition):
        mark_ready(record_store, "img1", ["cat"])


class _RacingStore:
    """compare_and_swap_status가 처음 N번 StatusConflict를 내는 래퍼."""

    def __init__(self, inner, conflicts: int):
        self.inner = inner
        self.conflicts = conflicts
        self.attempts = 0

    def get(self, image_id):
        return self.inner.get(image_id)

    def compare_and_swap_status(self, image_id, expected_status, new_record):
        self.attempts += 1
        if self.attempts <= self.conflicts:
            raise StatusConflict
        return self.inner.compare_and_swap_status(image_id, expected_status, new_record)


def test_retries_after_conflict(record_store):
    record_store.create(make_record("img1"))
    store = _RacingStore(record_store, conflicts=2)

    updated = transition_service.transition(
        store, "img1", ImageStatus.PROCESSING, max_attempts=3
    )
    assert updated.status == ImageStatus.PROCESSING
    assert store.attempts == 3


def test_gives_up_after_max_attempts(record_store):
    record_store.create(make_record("img1"))
    store = _RacingStore(record_store, conflicts=5)

    with pytest.raises(StatusConflict):
        transition_service.transition(store, "img1", ImageStatus.PROCESSING, max_attempts=2)
    assert store.attempts == 2
    assert record_store.get("img1").status == ImageStatus.PENDING


def test_normalize_keywords():
    assert transition_service.normalize_keywords(["b", "a ", "a", "", "  "]) == ["a", "b"]


class TestReadyThroughTransition:
    """transition()으로 직접 READY를 요청해도 키워드 규칙이 적용된다."""

    def test_without_keywords_is_rejected(self, record_store):
        record_store.create(make_record("img1"))
        mark_processing(record_store, "img1")

        with pytest.raises(InvalidRequest):
            transition_service.transition(record_store, "img1", ImageStatus.READY)
        record = record_store.get("img1")
        assert record.status == ImageStatus.PROCESSING
        assert record.keywords is None

    def test_keywords_are_normalized(self, record_store):
        record_store.create(make_record("img1"))
        mark_processing(record_store, "img1")

        ready = transition_service.transition(
            record_store, "img1", ImageStatus.READY, keywords=["outdoor ", "Cat", "cat", " "]
        )
        assert ready.keywords == ["Cat", "outdoor"]


def test_normalize_keywords_ignores_case_for_duplicates():
    """대소문자만 다른 중복은 처음 나온 표기 하나만 남는다."""
    assert transition_service.normalize_keywords(["Cat", "cat", "CAT"]) == ["Cat"]
    assert transition_service.normalize_keywords(["dog", "Cat", "cat"]) == ["Cat", "dog"]
    assert transition_service.normalize_keywords(None) == []
