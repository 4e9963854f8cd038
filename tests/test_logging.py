"""Tests for the logging setup used by the CLI and the course facade."""

from __future__ import annotations

import logging

import structlog

from dialogue_tutor.utils.logging import bind_course, configure_logging


def test_engine_records_reach_the_log_file(temp_dir):
    log_file = temp_dir / "logs" / "dialogue_tutor.log"
    configure_logging("INFO", log_file=log_file)

    logging.getLogger("dialogue_tutor.session").info("All progress cleared")
    logging.getLogger("openai").info("request sent")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "dialogue_tutor.session: All progress cleared" in text
    assert "request sent" not in text


def test_bind_course_replaces_previous_context():
    bind_course("physics", "Motion")
    bind_course("chemistry_course", "Some Basic Concepts of Chemistry")

    assert structlog.contextvars.get_contextvars() == {
        "course": "chemistry_course",
        "course_title": "Some Basic Concepts of Chemistry",
    }
    structlog.contextvars.clear_contextvars()
