"""Text helpers for article content: slugs, paragraphs and question markers."""

import re
from typing import List, Optional

# {{Q:phrase}} where phrase contains no braces
QUESTION_MARKER_RE = re.compile(r"\{\{Q:([^{}]+?)\}\}")
_MARKER_OPEN = "{{Q:"
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def slugify(title: str) -> str:
    """
    Derive a routing slug from a title.

    Lowercase, runs of non-alphanumeric characters collapsed to a single
    ``-``, no leading or trailing ``-``.
    """
    return _NON_ALNUM_RE.sub("-", title.lower()).strip("-")


def split_paragraphs(content: str) -> List[str]:
    """Split article content on blank lines, dropping empty paragraphs."""
    return [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(content) if p.strip()]


def extract_question_markers(content: str) -> List[str]:
    """Return the phrases of all well-formed ``{{Q:phrase}}`` markers in order."""
    return [m.group(1).strip() for m in QUESTION_MARKER_RE.finditer(content)]


def strip_question_markers(content: str) -> str:
    """Replace each marker with its bare phrase."""
    return QUESTION_MARKER_RE.sub(lambda m: m.group(1), content)


def normalize_question_markers(content: str) -> str:
    """
    Make every marker in generated content well-formed.

    Well-formed markers are kept as-is. Any other ``{{Q:`` opening (unclosed,
    nested, or containing braces) is removed along with its stray closing
    braces, leaving the surrounding text intact.
    """
    parts = []
    pos = 0
    for match in QUESTION_MARKER_RE.finditer(content):
        parts.append(_drop_broken_markers(content[pos:match.start()]))
        parts.append(f"{{{{Q:{match.group(1).strip()}}}}}")
        pos = match.end()
    parts.append(_drop_broken_markers(content[pos:]))
    return "".join(parts)


def _drop_broken_markers(text: str) -> str:
    if _MARKER_OPEN not in text and "}}" not in text:
        return text
    return text.replace(_MARKER_OPEN, "").replace("}}", "")


def paragraph_for_phrase(content: str, phrase: str) -> Optional[str]:
    """
    Find the paragraph that contains a question phrase.

    The returned paragraph has its markers stripped, ready to be passed as
    ``paragraphContext`` to an article question.
    """
    needle = phrase.strip().lower()
    for paragraph in split_paragraphs(content):
        plain = strip_question_markers(paragraph)
        if needle in plain.lower():
            return plain
    return None


def make_snippet(content: str, max_chars: int = 160) -> str:
    """Build a search snippet from the first paragraph of article content."""
    paragraphs = split_paragraphs(content)
    if not paragraphs:
        return ""
    first = strip_question_markers(paragraphs[0])
    if len(first) <= max_chars:
        return first
    cut = first[:max_chars].rsplit(" ", 1)[0]
    return cut.rstrip(",.;:") + "..."
