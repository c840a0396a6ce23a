"""Plain-text filter for model replies.

Strips Markdown, HTML, emoji and decorative symbols so the widget only ever
renders plain text. Each stage is a single pattern substitution; the stages
run in a fixed order because later ones assume earlier ones already removed
structure (e.g. inline code is unwrapped before emphasis markers are).
"""

from __future__ import annotations

from typing import NamedTuple, Optional, Tuple

import regex


class Stage(NamedTuple):
    name: str
    pattern: regex.Pattern
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


def _stage(name: str, pattern: str, replacement: str, flags: int = 0) -> Stage:
    return Stage(name, regex.compile(pattern, flags), replacement)


FENCED_CODE = _stage("fenced_code", r"```.*?```", "", regex.DOTALL)
INLINE_CODE = _stage("inline_code", r"`([^`]+)`", r"\1")
IMAGES = _stage("images", r"!\[[^\]]*\]\([^)]*\)", "")
LINKS = _stage("links", r"\[([^\]]+)\]\([^)]*\)", r"\1")
BOLD = _stage("bold", r"(\*\*|__)(.*?)\1", r"\2")
ITALIC = _stage("italic", r"(\*|_)(.*?)\1", r"\2")
HEADINGS = _stage("headings", r"^[ \t]*#{1,6}[ \t]*", "", regex.MULTILINE)
BULLETS = _stage("bullets", r"^[ \t]*[-*•●][ \t]+", "- ", regex.MULTILINE)
PICTOGRAPHS = _stage("pictographs", r"\p{Extended_Pictographic}", "")
HTML_TAGS = _stage("html_tags", r"<[^>]+>", "")
DOUBLE_QUOTES = _stage("double_quotes", r"[“”]", '"')
SINGLE_QUOTES = _stage("single_quotes", r"[‘’]", "'")
SPACES = _stage("spaces", r"[^\S\r\n]+", " ")
BLANK_LINES = _stage("blank_lines", r"\n{3,}", "\n\n")

PIPELINE: Tuple[Stage, ...] = (
    FENCED_CODE,
    INLINE_CODE,
    IMAGES,
    LINKS,
    BOLD,
    ITALIC,
    HEADINGS,
    BULLETS,
    PICTOGRAPHS,
    HTML_TAGS,
    DOUBLE_QUOTES,
    SINGLE_QUOTES,
    SPACES,
    BLANK_LINES,
)


def _single_pass(text: str) -> str:
    for stage in PIPELINE:
        text = stage.apply(text)
    return text.strip()


def sanitize(raw: Optional[str]) -> str:
    """Return ``raw`` as plain text. Never raises; ``None`` gives ``""``.

    Removing one layer of markup can expose another (``# # Title``,
    ``[[a](b)](c)``), so the pipeline is repeated until the text stops
    changing. No stage lengthens the text and the same-length rewrites
    (quotes, bullet markers, whitespace) only move towards their plain form,
    so the loop always ends.
    """
    if not raw:
        return ""
    text = str(raw)
    while True:
        cleaned = _single_pass(text)
        if cleaned == text:
            return cleaned
        text = cleaned
