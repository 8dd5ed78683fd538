"""
Sanitizers for text shown in the chat transcript.

Answers are rendered as plain text with **bold** markers only, so any HTML
coming back from the backend is removed: script and style blocks with their
content, every other tag without its content.
"""

import html
import re

_BLOCK_PATTERN = re.compile(r"<\s*(script|style)\b[^>]*>.*?<\s*/\s*\1\s*>", re.IGNORECASE | re.DOTALL)
# Opening tag left without a closing one: drop everything after it
_UNCLOSED_BLOCK_PATTERN = re.compile(r"<\s*(script|style)\b[^>]*>.*\Z", re.IGNORECASE | re.DOTALL)
# A tag name or "!" must follow "<" directly, so "< acima de 5 >" stays prose
_TAG_PATTERN = re.compile(r"<(?:/?[A-Za-z]|!)[^>]*>")
_COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)


def strip_html(text: str) -> str:
    """Remove HTML from ``text``, keeping the readable content of ordinary tags."""
    text = _COMMENT_PATTERN.sub("", text)
    text = _BLOCK_PATTERN.sub("", text)
    text = _UNCLOSED_BLOCK_PATTERN.sub("", text)
    return _TAG_PATTERN.sub("", text)


def sanitize_answer(text: str | None) -> str:
    """
    Make a backend answer safe for the transcript.

    Entities are decoded before stripping so that encoded tags
    (``&lt;script&gt;``) cannot survive as markup.
    """
    if not text:
        return ""

    text = strip_html(html.unescape(strip_html(text)))
    text = re.sub(r"[ \t]+\n", "\n", text)
    return re.sub(r"\n{3,}", "\n\n", text).strip()
