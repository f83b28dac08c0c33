"""Text processing for cell values.

Values may carry limited rich-text markup (bold, underline, line breaks)
stored HTML-escaped by the form layer.  The helpers here work on markup
strings and never touch the inside of a tag.
"""

from __future__ import annotations

import html
import re
from datetime import datetime, timezone
from urllib.parse import urlsplit

from formdoc.formatters.description import ZERO_WIDTH_SPACE

# Tags and existing links are left alone by every text transform
_TAG_RE = re.compile(r"<[^>]*>")
_PROTECTED_RE = re.compile(r"<a\b[^>]*>.*?</a\s*>|<[^>]*>", re.IGNORECASE | re.DOTALL)

_MARKDOWN_LINK_RE = re.compile(r"\[([^\]\n]+)\]\(\s*([^)\s]+)\s*\)")
_EMAIL_RE = re.compile(r"(?<![\w.+-])[\w.+-]+@[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}")

_KNOWN_TLDS = (
    "com|org|net|edu|gov|mil|int|info|biz|io|co|ai|app|dev|me|tv|"
    "us|uk|eu|es|mx|ar|cl|pe|ec|ve|br|de|fr|it|pt|nl|ca|au"
)
_URL_RE = re.compile(
    r"(?<![\w@/.-])"
    r"(?:"
    r"https?://[^\s<>\"']+"
    r"|www\.[^\s<>\"']+"
    rf"|[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.(?:{_KNOWN_TLDS})\b(?:/[^\s<>\"']*)?"
    r")",
    re.IGNORECASE,
)
_TRAILING_PUNCTUATION = ".,;:!?)]}'\""

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_CHAR_UNIT_RE = re.compile(r"&#?\w+;|.", re.DOTALL)


def unescape_html(text: str) -> str:
    """Turn entity-escaped markup (``&lt;b&gt;``) back into markup."""
    return html.unescape(text)


def _map_outside(text: str, pattern: re.Pattern[str], transform) -> str:
    """Apply ``pattern.sub(transform, ...)`` only to text outside tags and links."""
    pieces: list[str] = []
    cursor = 0
    for protected in _PROTECTED_RE.finditer(text):
        pieces.append(pattern.sub(transform, text[cursor : protected.start()]))
        pieces.append(protected.group(0))
        cursor = protected.end()
    pieces.append(pattern.sub(transform, text[cursor:]))
    return "".join(pieces)


def _link_markup(target: str, visible: str) -> str:
    return f'<a href="{html.escape(target, quote=True)}">{html.escape(visible, quote=False)}</a>'


def _link_target(raw: str) -> str:
    if raw.lower().startswith("mailto:"):
        return raw
    if _EMAIL_RE.fullmatch(raw):
        return f"mailto:{raw}"
    if re.match(r"^[a-z][a-z0-9+.-]*://", raw, re.IGNORECASE):
        return raw
    return f"https://{raw}"


def shorten_url(url: str, max_chars: int = 45) -> str:
    """Visible form of a URL: ``origin/.../lastSegment`` plus ``?...`` for queries.

    Short URLs with at most one path segment and no query are returned as is.
    """
    has_scheme = bool(re.match(r"^[a-z][a-z0-9+.-]*://", url, re.IGNORECASE))
    parts = urlsplit(url if has_scheme else f"//{url}")
    origin = f"{parts.scheme}://{parts.netloc}" if has_scheme else parts.netloc
    segments = [s for s in parts.path.split("/") if s]
    query = "?..." if parts.query else ""

    if len(url) <= max_chars and len(segments) <= 1 and not parts.query:
        return url

    if not segments:
        visible = f"{origin}{query}"
    elif len(segments) == 1:
        visible = f"{origin}/{segments[0]}{query}"
    else:
        visible = f"{origin}/.../{segments[-1]}{query}"

    if len(visible) > max_chars:
        visible = visible[: max_chars - 3] + "..."
    return visible


def _strip_trailing_punctuation(url: str) -> str:
    """Drop sentence punctuation after a URL; a closing paren stays when it balances one in the URL."""
    while url and url[-1] in _TRAILING_PUNCTUATION:
        if url[-1] == ")" and url.count("(") >= url.count(")"):
            break
        url = url[:-1]
    return url


def linkify(text: str, max_visible_chars: int = 45) -> str:
    """Wrap Markdown links, bare emails and bare URLs in ``<a>`` markup.

    Markdown ``[text](target)`` spans are handled first, then emails, then
    URLs; text already inside a link is never processed again.
    """

    def _markdown(match: re.Match[str]) -> str:
        label, target = match.group(1), match.group(2)
        return _link_markup(_link_target(target), label)

    def _email(match: re.Match[str]) -> str:
        address = match.group(0)
        return _link_markup(f"mailto:{address}", address)

    def _url(match: re.Match[str]) -> str:
        raw = match.group(0)
        stripped = _strip_trailing_punctuation(raw)
        trailing = raw[len(stripped) :]
        if not stripped:
            return raw
        return _link_markup(_link_target(stripped), shorten_url(stripped, max_visible_chars)) + trailing

    text = _map_outside(text, _MARKDOWN_LINK_RE, _markdown)
    text = _map_outside(text, _EMAIL_RE, _email)
    return _map_outside(text, _URL_RE, _url)


def break_long_words(text: str, threshold: int = 35) -> str:
    """Insert zero-width spaces inside unbroken runs of ``threshold`` or more characters.

    Tags are skipped so attribute values (link targets) stay intact.
    """
    long_word = re.compile(rf"[^\s<>]{{{threshold},}}")

    def _split(match: re.Match[str]) -> str:
        # character references stay whole
        return ZERO_WIDTH_SPACE.join(_CHAR_UNIT_RE.findall(match.group(0)))

    pieces: list[str] = []
    cursor = 0
    for tag in _TAG_RE.finditer(text):
        pieces.append(long_word.sub(_split, text[cursor : tag.start()]))
        pieces.append(tag.group(0))
        cursor = tag.end()
    pieces.append(long_word.sub(_split, text[cursor:]))
    return "".join(pieces)


def format_iso_date(text: str, fmt: str = "%d/%m/%Y") -> str:
    """Reformat a leading ISO date (``YYYY-MM-DD...``); other text is returned unchanged.

    Timestamps with an offset are converted to UTC before formatting.
    """
    if not _ISO_DATE_RE.match(text):
        return text
    candidate = text.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        try:
            parsed = datetime.strptime(text[:10], "%Y-%m-%d")
        except ValueError:
            return text
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime(fmt)


def newlines_to_breaks(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\n", "<br>")


def strip_markup(text: str) -> str:
    """Plain text of a markup string with zero-width markers removed."""
    return html.unescape(_TAG_RE.sub("", text)).replace(ZERO_WIDTH_SPACE, "")


def contains_markup(text: str) -> bool:
    """Crude rich-text detector: any literal ``<`` counts as markup."""
    return "<" in text


def stringify(value: object) -> str:
    """Display string for a record value."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty_value(value: object) -> bool:
    """``None`` and ``""`` are unanswered; ``0`` and ``False`` are answers."""
    return value is None or (isinstance(value, str) and value == "")
