from __future__ import annotations

import textwrap
from typing import Iterable, List

from dialogue_tutor.data_models import Note


def _ordered(notes: Iterable[Note]) -> List[Note]:
    return sorted(notes, key=lambda note: (note.timestamp, note.id))


def _note_lines(note: Note, width: int) -> List[str]:
    location = " - ".join(part for part in (note.section_title, note.subsection_title) if part)
    lines = textwrap.wrap(note.title, width) or [""]
    if location:
        lines.extend(textwrap.wrap(f"Location: {location}", width))
    lines.append(f"Date: {note.timestamp:%Y-%m-%d %H:%M}")
    lines.append("")
    for paragraph in note.content.splitlines():
        lines.extend(textwrap.wrap(paragraph, width) or [""])
    lines.append("")
    return lines


def notes_to_pages(
    notes: Iterable[Note],
    title: str = "My Study Notes",
    width: int = 80,
    lines_per_page: int = 50,
) -> List[str]:
    """
    Lay notes out as fixed-height text pages, oldest first.

    Each page holds at most `lines_per_page` body lines followed by a
    "Page i of n" footer; a note that does not fit continues on the next page.
    """
    if lines_per_page < 2:
        raise ValueError("lines_per_page must be at least 2")
    ordered = _ordered(notes)
    body: List[str] = [title, f"Total: {len(ordered)} note{'s' if len(ordered) != 1 else ''}", ""]
    for note in ordered:
        body.extend(_note_lines(note, width))

    chunks = [body[start:start + lines_per_page] for start in range(0, len(body), lines_per_page)]
    total = len(chunks)
    return [
        "\n".join(chunk + ["", f"Page {number} of {total}"])
        for number, chunk in enumerate(chunks, start=1)
    ]


def notes_to_markdown(notes: Iterable[Note], title: str = "My Study Notes") -> str:
    """Convert notes to markdown for download/export."""
    lines: list[str] = [f"# {title}", ""]
    for note in _ordered(notes):
        lines.append(f"## {note.title}")
        location = " - ".join(part for part in (note.section_title, note.subsection_title) if part)
        if location:
            lines.append(f"*{location}*")
        lines.append(f"*{note.timestamp:%Y-%m-%d %H:%M}*")
        lines.append("")
        lines.append(note.content)
        lines.append("")
        lines.append("---")
        lines.append("")
    return "\n".join(lines)
