"""HTML → plain text conversion for thread bodies."""

import re
from html.parser import HTMLParser
from typing import Any

# Tags whose boundaries become line breaks in the plain-text rendering
_BLOCK_TAGS = frozenset({
    "address", "article", "blockquote", "br", "div", "footer", "h1", "h2", "h3",
    "h4", "h5", "h6", "header", "hr", "li", "ol", "p", "pre", "section", "table",
    "tr", "ul",
})
_SKIP_TAGS = frozenset({"script", "style", "head", "title"})

_INLINE_SPACE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n{3,}")


# ── HTML stripper ───────────────────────────────────────────────────────────────


class _HTMLToText(HTMLParser):
    """HTMLParser subclass that keeps visible text and paragraph structure."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._parts: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag in _SKIP_TAGS:
            self._skip_depth += 1
        elif tag in _BLOCK_TAGS:
            self._parts.append("\n")

    def handle_endtag(self, tag: str) -> None:
        if tag in _SKIP_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
        elif tag in _BLOCK_TAGS:
            self._parts.append("\n")

    def handle_data(self, data: str) -> None:
        if not self._skip_depth:
            self._parts.append(data)

    def get_text(self) -> str:
        raw = "".join(self._parts)
        lines = [_INLINE_SPACE.sub(" ", line).strip() for line in raw.split("\n")]
        return _BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()


def html_to_text(html: str) -> str:
    """Return readable plain text from an HTML fragment.

    Block elements become line breaks, ``<script>``/``<style>`` content is
    dropped and entities are decoded.  Input without markup is only
    whitespace-normalised.
    """
    if not html:
        return ""
    parser = _HTMLToText()
    parser.feed(html)
    parser.close()
    return parser.get_text()


def plain_bodies(data: Any) -> Any:
    """Return a copy of ``data`` with every ``body`` string converted to plain text.

    Walks nested dicts and lists; used for the CLI's plain-text output mode.
    """
    if isinstance(data, dict):
        return {
            key: html_to_text(value) if key == "body" and isinstance(value, str) else plain_bodies(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [plain_bodies(item) for item in data]
    return data
