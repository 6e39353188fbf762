import html
import re
from typing import Optional, NamedTuple

from codemate.models import PageContext
from codemate.logger import get_logger

logger = get_logger(__name__)

# Core functions for reading editor markup and page snapshots

# Only real HTML elements count as markup, so `vector<int>` or `a<b && b>c`
# in plain source text is never mistaken for a tag
_HTML_TAGS = (
    "div|span|br|p|pre|code|style|script|li|ul|ol|table|tbody|thead|tr|td"
    "|h[1-6]|font|section"
)
_ATTRS = r"""(?:\s+[\w:.-]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s"'>]+))?)*\s*/?"""
_MARKUP_TAG = re.compile(rf"</?(?:{_HTML_TAGS}){_ATTRS}>", re.IGNORECASE)
_COMMENT = re.compile(r"<!--[\s\S]*?-->")
_SCRIPT_OR_STYLE = re.compile(
    r"<(script|style)\b[^>]*>[\s\S]*?</\1\s*>", re.IGNORECASE
)
_LINE_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLOCK_END = re.compile(
    r"(?:</(?:div|p|li|pre|tr|h[1-6])\s*>\s*)+", re.IGNORECASE
)
# Entities must end with ";" so `&para` in C code is left alone
_ENTITY = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[a-zA-Z][a-zA-Z0-9]*);")
_ZERO_WIDTH = re.compile("[\u200b\u200c\u200d\ufeff]")

_OPEN_TAG = re.compile(r"<([a-zA-Z][\w-]*)((?:\s[^>]*)?)>")
_TOP_OFFSET = re.compile(r"top\s*:\s*(-?\d+(?:\.\d+)?)px", re.IGNORECASE)
_STYLE_ATTR = re.compile(r"""\bstyle\s*=\s*(["'])(.*?)\1""", re.IGNORECASE | re.DOTALL)
_VOID_TAGS = {"br", "hr", "img", "input", "meta", "link", "area", "base", "col", "wbr"}

# Monaco renders each visible line as .view-line, CodeMirror 6 as .cm-line
LINE_CLASSES = ("view-line", "cm-line")


class ElementSpan(NamedTuple):
    """Offsets of an element inside a document: [start, inner_start, inner_end, end)"""

    start: int
    inner_start: int
    inner_end: int
    end: int


def _decode_entities(text: str) -> str:
    return _ENTITY.sub(lambda match: html.unescape(match.group(0)), text)


def _clean_text(text: str) -> str:
    text = _decode_entities(text).replace("\xa0", " ")
    return _ZERO_WIDTH.sub("", text)


def _attr_has_class(attrs: str, class_name: str) -> bool:
    match = re.search(r"""\bclass\s*=\s*(["'])(.*?)\1""", attrs, re.IGNORECASE | re.DOTALL)
    return bool(match) and class_name in match.group(2).split()


def _attr_has_role(attrs: str, role: str) -> bool:
    match = re.search(r"""\brole\s*=\s*(["'])(.*?)\1""", attrs, re.IGNORECASE | re.DOTALL)
    return bool(match) and match.group(2).strip() == role


def _top_offset(attrs: str) -> Optional[float]:
    style = _STYLE_ATTR.search(attrs)
    if not style:
        return None
    top = _TOP_OFFSET.search(style.group(2))
    return float(top.group(1)) if top else None


def find_element(
    document: str, class_name: str | None = None, role: str | None = None
) -> Optional[ElementSpan]:
    """Locate the first element carrying a class or a role attribute"""
    if not document:
        return None

    for match in _OPEN_TAG.finditer(document):
        tag, attrs = match.group(1), match.group(2)
        if class_name is not None and not _attr_has_class(attrs, class_name):
            continue
        if role is not None and not _attr_has_role(attrs, role):
            continue

        if tag.lower() in _VOID_TAGS or attrs.rstrip().endswith("/"):
            return ElementSpan(match.start(), match.end(), match.end(), match.end())

        # Walk forward to the matching close tag, counting nested same-name tags
        same_tag = re.compile(rf"<(/?){re.escape(tag)}\b[^>]*>", re.IGNORECASE)
        depth = 1
        for inner in same_tag.finditer(document, match.end()):
            if inner.group(1):
                depth -= 1
                if depth == 0:
                    return ElementSpan(match.start(), match.end(), inner.start(), inner.end())
            elif not inner.group(0).rstrip(">").rstrip().endswith("/"):
                depth += 1

        logger.debug(f"Element <{tag}> at offset {match.start()} is never closed")
        return None

    return None


def _extract_lines(markup: str) -> Optional[list[str]]:
    """Collect editor line blocks, or None when the markup has none"""
    lines = []
    for match in _OPEN_TAG.finditer(markup):
        tag, attrs = match.group(1), match.group(2)
        if not any(_attr_has_class(attrs, name) for name in LINE_CLASSES):
            continue
        # Line blocks only hold inline spans, so the next close tag ends the line
        close = re.compile(rf"</{re.escape(tag)}\s*>", re.IGNORECASE).search(
            markup, match.end()
        )
        body_end = close.start() if close else len(markup)
        body = _MARKUP_TAG.sub("", markup[match.end() : body_end])
        lines.append((_top_offset(attrs), len(lines), _clean_text(body)))

    if not lines:
        return None

    # Virtualised editors reuse line nodes, so DOM order can differ from screen order
    if all(top is not None for top, _, _ in lines):
        lines.sort(key=lambda line: (line[0], line[1]))
    return [text for _, _, text in lines]


def extract_code(markup: str) -> str:
    """Turn the markup of an editor's visible line container into source code"""
    if not markup or not markup.strip():
        return ""

    if not _MARKUP_TAG.search(markup) and not _COMMENT.search(markup):
        # Already plain text; entities and odd spaces here belong to the source
        return markup

    lines = _extract_lines(markup)
    if lines is not None:
        return "\n".join(lines)

    text = _COMMENT.sub("", markup)
    text = _SCRIPT_OR_STYLE.sub("", text)
    text = _LINE_BREAK.sub("\n", text)
    text = _BLOCK_END.sub("\n", text)
    text = _MARKUP_TAG.sub("", text)
    return _clean_text(text).rstrip("\n")


def page_context_from_html(
    page_html: str, programming_language: str, problem_statement: str | None = None
) -> PageContext:
    """Build the page context, reading the problem statement from the meta description when not given"""
    if problem_statement is None:
        problem_statement = ""
        for match in re.finditer(r"<meta\b([^>]*)>", page_html or "", re.IGNORECASE):
            attrs = match.group(1)
            name = re.search(r"""\bname\s*=\s*(["'])(.*?)\1""", attrs, re.IGNORECASE)
            if not name or name.group(2).lower() != "description":
                continue
            content = re.search(r"""\bcontent\s*=\s*(["'])(.*?)\1""", attrs, re.IGNORECASE | re.DOTALL)
            if content:
                problem_statement = html.unescape(content.group(2))
            break

    return PageContext(
        problem_statement=problem_statement,
        programming_language=programming_language,
    )
