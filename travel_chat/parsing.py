"""Split raw assistant content into the visible answer and its reasoning block."""

from __future__ import annotations

from dataclasses import dataclass
import re

# Non-greedy and DOTALL so the first span wins and may cover several lines.
# An unclosed <reasoning> tag never matches and stays in the visible text.
_REASONING_RE = re.compile(
    r"<reasoning>(?P<inner>.*?)</reasoning>", re.IGNORECASE | re.DOTALL
)
_ITINERARY_TAG_RE = re.compile(r"</?itinerary>", re.IGNORECASE)
# Stripping runs to a fixed point, so a reasoning span that only forms once an
# itinerary marker is removed is dropped too:
# "<reasoning>x</reason<itinerary>ing>" leaves an empty main, not
# "<reasoning>x</reasoning>". This keeps parse_message(main) stable.

REASONING_HEADING = "Reasoning:"


@dataclass(frozen=True)
class ParsedContent:
    """Derived view of a message; recomputed on demand, never stored."""

    main: str
    reasoning: str | None = None


def _strip_markup(text: str) -> str:
    """Remove reasoning spans and itinerary markers until none remain.

    Removing one marker can splice the surrounding text into a new one, so the
    passes repeat until the text stops shrinking.
    """
    while True:
        stripped = _ITINERARY_TAG_RE.sub("", _REASONING_RE.sub("", text))
        if stripped == text:
            return text
        text = stripped


def parse_message(text: str | None) -> ParsedContent:
    """Return the visible text and optional reasoning extracted from ``text``.

    The first ``<reasoning>...</reasoning>`` span supplies ``reasoning`` and is
    removed with its tags. ``<itinerary>`` markers are dropped while their
    content is kept. The result is pure and ``parse_message(main)`` returns
    ``main`` unchanged with no reasoning.
    """
    if not text:
        return ParsedContent(main="", reasoning=None)

    reasoning: str | None = None
    cleaned = text
    match = _REASONING_RE.search(cleaned)
    if match is not None:
        reasoning = match.group("inner").strip()
        cleaned = cleaned[: match.start()] + cleaned[match.end() :]

    return ParsedContent(main=_strip_markup(cleaned).strip(), reasoning=reasoning)


def build_copy_text(parsed: ParsedContent, include_reasoning: bool) -> str:
    """Build clipboard text, appending a delimited reasoning section on request."""
    text = parsed.main
    if include_reasoning and parsed.reasoning:
        text += f"\n\n{REASONING_HEADING}\n{parsed.reasoning}"
    return text
