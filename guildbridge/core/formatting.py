"""Convert GitHub markdown into Discord-friendly text."""

from __future__ import annotations

import re

_H3 = re.compile(r"^### (.*)$", re.MULTILINE)
_H2 = re.compile(r"^## (.*)$", re.MULTILINE)
_H1 = re.compile(r"^# (.*)$", re.MULTILINE)
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_IMAGE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")


def markdown_to_discord(markdown: str) -> str:
    text = _H3.sub(r"**\1**", markdown)
    text = _H2.sub(r"**__\1__**", text)
    text = _H1.sub(r"**__\1__**", text)
    text = _HTML_COMMENT.sub("", text)
    text = _IMAGE.sub(r"[\1](\2)", text)
    return text.strip()
