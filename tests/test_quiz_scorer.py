"""Tests for the three quiz answer policies and batch evaluation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dialogue_tutor.learning.quiz import (
    FillBlankQuestion,
    MultipleChoiceQuestion,
    QuizScorer,
    ShortAnswerQuestion,
    evaluate_fill_blanks,
    evaluate_multiple_choice,
    evaluate_short_answers,
    normalize_answer,
)


def test_normalize_answer():
    assert normalize_answer("  Hello, World!  ") == "hello world"
    assert normalize_answer("6.022 × 10²³") == "6022 x 1023"
    assert normalize_answer("?!") == ""


def test_choice_is_index_equality():
    assert QuizScorer.score_choice(2, 2)
    assert not QuizScorer.score_choice(1, 2)
    assert not QuizScorer.score_choice(None, 0)


@pytest.mark.parametrize(
    "user",
    ["6.022×10^23", "6.022 x 10^23", "6.022 × 10²³", "  6.022 X 10^23. "],
)
def test_fill_blank_accepts_formatting_variants(user):
    assert QuizScorer.score_fill_blank(user, "6.022 x 10^23")


def test_fill_blank_rejects_unrelated_answer():
    assert not QuizScorer.score_fill_blank("avogadro", "6.022 x 10^23")


def test_fill_blank_substring_rule_is_lenient():
    assert QuizScorer.score_fill_blank("the answer is Mass of the object", "mass")
    assert QuizScorer.score_fill_blank("mol", "mole")


def test_fill_blank_empty_answer_is_wrong():
    assert not QuizScorer.score_fill_blank("", "mole")
    assert not QuizScorer.score_fill_blank("...", "mole")


def test_short_answer_key_point_credit():
    key_points = ["mass", "volume", "energy"]

    assert QuizScorer.score_short_answer("Matter has MASS and takes up volume.", key_points) == 67
    assert QuizScorer.score_short_answer("mass, volume and energy", key_points) == 100
    assert QuizScorer.score_short_answer("   ", key_points) == 0
    assert QuizScorer.score_short_answer("anything", []) == 0


def test_evaluate_multiple_choice():
    questions = [
        MultipleChoiceQuestion(id=1, question="q1", options=["a", "b"], correct_answer=1),
        MultipleChoiceQuestion(id=2, question="q2", options=["a", "b", "c"], correct_answer=0),
        MultipleChoiceQuestion(id=3, question="q3", options=["a", "b"], correct_answer=0),
    ]

    result = evaluate_multiple_choice(questions, {1: 1, 2: 2})

    assert (result.score, result.total, result.percentage) == (1, 3, 33)
    assert [item.is_correct for item in result.question_results] == [True, False, False]
    assert result.question_results[2].user_answer is None


def test_multiple_choice_answer_must_be_an_option():
    with pytest.raises(ValidationError):
        MultipleChoiceQuestion.model_validate({"id": 1, "question": "q", "options": ["a"], "correctAnswer": 1})


def test_evaluate_fill_blanks():
    questions = [
        FillBlankQuestion(id="a", question="Avogadro's number is ___", answer="6.022 × 10²³"),
        FillBlankQuestion(id="b", question="SI unit of amount is the ___", answer="mole"),
    ]

    result = evaluate_fill_blanks(questions, {"a": "6.022x10^23", "b": "kilogram"})

    assert (result.score, result.total, result.percentage) == (1, 2, 50)


def test_evaluate_short_answers_averages_scores():
    questions = [
        ShortAnswerQuestion.model_validate(
            {"id": 1, "question": "Define matter", "keyPoints": ["mass", "volume", "space"]}
        ),
        ShortAnswerQuestion(id=2, question="Define mole", key_points=["avogadro"]),
    ]

    result = evaluate_short_answers(questions, {1: "it has mass and volume", 2: "Avogadro's number of particles"})

    assert [item.score for item in result.question_results] == [67, 100]
    assert result.score == result.percentage == 84  # round(83.5)
    assert result.total == 100


def test_evaluate_empty_quiz():
    assert evaluate_multiple_choice([], {}).percentage == 0
    assert evaluate_short_answers([], {}).percentage == 0
