from datetime import datetime, timezone

from lms_admin.core.result_reconciler import (
    attempt_position,
    build_review,
    is_passing,
    reconcile_answers,
    score_percentage,
    student_answer_at,
)

from conftest import make_exam, make_result


def test_percentage_rounds_half_up():
    assert score_percentage(1, 8) == 13  # 12.5
    assert score_percentage(2, 3) == 67
    assert score_percentage(5, 10) == 50


def test_percentage_without_marks_is_zero():
    assert score_percentage(5, 0) == 0
    assert score_percentage(5, -10) == 0


def test_fifty_percent_passes():
    assert is_passing(score_percentage(5, 10))
    assert not is_passing(49)


def test_missing_and_invalid_answers_are_skipped():
    assert student_answer_at([1, 2], 5) == -1
    assert student_answer_at([None], 0) == -1
    assert student_answer_at(["1"], 0) == -1
    assert student_answer_at([True], 0) == -1
    assert student_answer_at([2.0], 0) == 2


def test_reconcile_marks_options():
    exam = make_exam()
    verdicts = reconcile_answers([1, 0], exam.questions)
    assert len(verdicts) == 3
    choice, true_false, short = verdicts
    assert not choice.is_correct
    assert [mark.is_selected for mark in choice.options] == [False, True, False]
    assert [mark.is_correct_option for mark in choice.options] == [True, False, False]
    assert true_false.is_correct
    assert short.is_skipped
    assert not short.answer_text_available
    assert short.correct_answer_text == "Au"


def test_attempt_numbering_ignores_arrival_order():
    first = make_result("b", submitted_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
    second = make_result("c", submitted_at=datetime(2024, 1, 2, tzinfo=timezone.utc))
    third = make_result("a", submitted_at=datetime(2024, 1, 3, tzinfo=timezone.utc))
    other_exam = make_result("z", exam_id="exam-2")
    for ordering in ([third, first, second, other_exam], [second, other_exam, third, first]):
        assert attempt_position(ordering, second) == (2, 3)
        assert attempt_position(ordering, first) == (1, 3)


def test_build_review_counts():
    exam = make_exam()
    result = make_result("r1", answers=[0, 1], score=5, total_marks=10)
    review = build_review(result, exam, [result])
    assert review.percentage == 50
    assert review.passed
    assert review.exam_available
    assert (review.correct_count, review.incorrect_count, review.skipped_count) == (1, 1, 1)
    assert (review.attempt_number, review.total_attempts) == (1, 1)


def test_review_of_deleted_exam_has_no_verdicts():
    result = make_result("r1", score=3, total_marks=10)
    review = build_review(result, None, [])
    assert not review.exam_available
    assert review.verdicts == []
    assert review.score == 3
    assert not review.passed
