"""Tests for idempotent engagement tracking and derived percentages."""

from __future__ import annotations

from dialogue_tutor.learning import CourseTotals, DialogueIndex, StatisticsAggregator, media_key, percentage


def test_percentage_rounds_half_up_and_guards_zero():
    assert percentage(2, 3) == 67
    assert percentage(1, 8) == 13  # 12.5
    assert percentage(0, 0) == 0
    assert percentage(5, 5) == 100


def test_revisiting_a_turn_is_a_no_op(course_builder):
    index = DialogueIndex(course_builder([[2, 1]]))
    aggregator = StatisticsAggregator()

    assert aggregator.record_turn(index.at(1))
    for _ in range(5):
        assert not aggregator.record_turn(index.at(1))

    stats = aggregator.stats
    assert stats.messages_viewed == {1}
    assert stats.sections_visited == {1}
    assert stats.subsections_visited == {"1:1.1"}


def test_media_views_are_deduplicated():
    aggregator = StatisticsAggregator()

    assert aggregator.record_media_view(4, "image", 0)
    assert not aggregator.record_media_view(4, "image", 0)
    assert aggregator.record_media_view(4, "image", 1)
    assert aggregator.record_media_view(4, "video", 0)
    assert not aggregator.record_media_view(4, "quiz", 0), "quizzes count only when answered"

    assert aggregator.stats.images_viewed == {"4:image:0", "4:image:1"}
    assert aggregator.stats.videos_watched == {media_key(4, "video", 0)}


def test_quiz_submissions_always_count_attempts():
    aggregator = StatisticsAggregator()

    aggregator.record_quiz_answer(3, 0, is_correct=True)
    aggregator.record_quiz_answer(3, 0, is_correct=False)
    aggregator.record_quiz_answer(5, 1, is_correct=True)

    stats = aggregator.stats
    assert stats.quizzes_completed == {"3:quiz:0", "5:quiz:1"}
    assert stats.total_quiz_attempts == 3
    assert stats.correct_answers == 2
    assert stats.correct_answers <= stats.total_quiz_attempts
    assert aggregator.accuracy() == 67


def test_report_against_totals(course_builder):
    index = DialogueIndex(course_builder([[2, 1], [3]]))
    aggregator = StatisticsAggregator()
    for position in (0, 1, 3):
        aggregator.record_turn(index.at(position))
    aggregator.record_media_view(0, "image", 0)

    report = aggregator.report(CourseTotals(total_turns=6, total_sections=2, total_subsections=3, total_images=2))

    assert report["messages_viewed"] == 3
    assert report["completion_percentage"] == 50
    assert report["sections_visited"] == 2
    assert report["subsections_visited"] == 2
    assert report["accuracy"] == 0
    assert report["media_engagement"] == 1
    assert report["total_images"] == 2


def test_reset_starts_from_empty():
    aggregator = StatisticsAggregator()
    aggregator.record_quiz_answer(0, 0, True)

    aggregator.reset()

    assert aggregator.stats.total_quiz_attempts == 0
    assert aggregator.completion_percentage(10) == 0


def test_completion_never_exceeds_one_hundred():
    aggregator = StatisticsAggregator()
    aggregator.stats.messages_viewed.update({0, 1, 2, 7, 9})

    assert aggregator.completion_percentage(3) == 100
    assert aggregator.discard_turns_outside(3) == 2
    assert aggregator.stats.messages_viewed == {0, 1, 2}
