import re

from bs4 import BeautifulSoup, Comment, Tag
from bs4.element import PreformattedString

# Matches `display:none` or `visibility:hidden` in inline style attributes
_HIDDEN_STYLE_RE = re.compile(
    r"(display\s*:\s*none|visibility\s*:\s*hidden)", re.IGNORECASE
)

_WHITESPACE_RE = re.compile(r"\s+")

# Tags whose text is never shown to a visitor
_INVISIBLE_TAGS = {
    "script",
    "style",
    "noscript",
    "template",
    "svg",
    "canvas",
    "iframe",
    "object",
    "head",
}


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def strip_invisible(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove non-rendered subtrees from *soup* in place and return it.

    Drops scripting/styling tags, HTML comments, and elements hidden with
    inline ``display:none`` / ``visibility:hidden``.  Links and attributes on
    visible elements are left untouched.
    """
    for tag in soup.find_all(_INVISIBLE_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(style=_HIDDEN_STYLE_RE):
        if isinstance(tag, Tag) and not tag.decomposed:
            tag.decompose()

    return soup


def visible_text(node: Tag) -> str:
    """Join the text nodes under *node* with single spaces.

    Adjacent elements (``<span>Email</span><span>uk@example.com</span>``)
    therefore never run together into one token.
    """
    parts = [
        str(text).strip()
        for text in node.find_all(string=True)
        if not isinstance(text, PreformattedString)
    ]
    return " ".join(part for part in parts if part)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()
