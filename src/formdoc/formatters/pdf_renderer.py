"""PDF render adapter using reportlab.

Turns a :class:`~formdoc.formatters.description.DocumentDescription` into
PDF bytes, a previewable temporary file, or a downloaded file::

    renderer = PDFRenderer()
    pdf_bytes = renderer.render_bytes(description)

Fonts are resolved lazily on first render.  With ``FORMDOC_PDF_FONT_DIR``
set, the four TTF faces named by ``FORMDOC_FONT_*`` are registered under
``FORMDOC_PDF_FONT_FAMILY``; otherwise the family must be one of the PDF
base fonts (Helvetica, Times-Roman, Courier).
"""

from __future__ import annotations

import base64
import binascii
import html
import logging
import re
import tempfile
import threading
from dataclasses import dataclass, field
from functools import lru_cache, partial
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Optional

from formdoc.core.config import FontFiles, PDFFormattingConfig
from formdoc.exceptions import RenderBackendInitError, RenderError
from formdoc.formatters.description import (
    ZERO_WIDTH_SPACE,
    Block,
    Cell,
    DocumentDescription,
    DocumentInfo,
    Empty,
    Image,
    Stack,
    Style,
    Table,
    Text,
    TextRun,
)

try:
    from reportlab.lib import colors as rl_colors
    from reportlab.lib.colors import HexColor
    from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
    from reportlab.lib.fonts import tt2ps
    from reportlab.lib.pagesizes import A4, LETTER, landscape
    from reportlab.lib.pdfencrypt import StandardEncryption
    from reportlab.lib.styles import ParagraphStyle
    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.pdfmetrics import registerFontFamily, stringWidth
    from reportlab.pdfbase.ttfonts import TTFError, TTFont
    from reportlab.pdfgen import canvas as rl_canvas
    from reportlab.platypus import Flowable, SimpleDocTemplate, Spacer, TableStyle
    from reportlab.platypus import Image as _RawImage
    from reportlab.platypus import Paragraph as _RawParagraph
    from reportlab.platypus import Table as _RawTable
    from reportlab.platypus.doctemplate import LayoutError
except ImportError as _exc:
    raise ImportError("reportlab is required for PDF output. Install with: pip install reportlab") from _exc

log = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


# ── Unicode sanitization ────────────────────────────────────────────
# The PDF base fonts lack glyphs for some common typographic characters.
# Only applied when no TTF family is registered.

_UNICODE_REPLACEMENTS: dict[str, str] = {
    "\u2011": "-",       # non-breaking hyphen
    "\u2010": "-",       # hyphen
    "\u2013": "-",       # en dash
    "\u2014": "-",       # em dash
    "\u202f": " ",       # narrow no-break space
    "\u2009": " ",       # thin space
    "\u2018": "'",       # left single quote
    "\u2019": "'",       # right single quote
    "\u201c": '"',       # left double quote
    "\u201d": '"',       # right double quote
    "\u2026": "...",     # ellipsis
}


def _sanitize_text(text: str) -> str:
    for char, replacement in _UNICODE_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text


# ── Filenames ────────────────────────────────────────────────────────

_UNSAFE_FILENAME_RE = re.compile(r'[/\\?%*:"<>|\x00]')


def sanitize_filename(title: Optional[str], default: str = "document") -> str:
    """Replace characters that are invalid in file names with ``_``."""
    name = _UNSAFE_FILENAME_RE.sub("_", (title or "").strip())
    return name or default


# ── Lookups ──────────────────────────────────────────────────────────

_PAGE_SIZES = {"letter": LETTER, "a4": A4}

_ALIGNMENTS = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT, "justify": TA_JUSTIFY}

# Upper bound for an "auto" column, as a share of the table width
_AUTO_COLUMN_MAX_SHARE = 0.4


def _hex(color_str: str) -> HexColor:
    return HexColor(color_str)


def _shim_content(table: Table) -> Optional[Block]:
    """The content row of a vertical-centering shim."""
    if len(table.body) == 3 and table.body[1]:
        return table.body[1][0].content
    return None


def _is_shim(block: Optional[Block]) -> bool:
    return isinstance(block, Table) and block.vertical_center


# ── Backend ──────────────────────────────────────────────────────────


class RenderBackend:
    """Process-wide font setup, done once on first use.

    Initialization is single-flight: concurrent first renders wait on the
    same lock and share the outcome.  A failed attempt leaves the backend
    uninitialized so the next render retries.
    """

    def __init__(self, config: PDFFormattingConfig | None = None) -> None:
        self._config = config or PDFFormattingConfig()
        self._lock = threading.Lock()
        self._family: Optional[str] = None

    @property
    def initialized(self) -> bool:
        return self._family is not None

    @property
    def uses_ttf(self) -> bool:
        return self._config.font_dir is not None

    def ensure(self) -> str:
        """Return the usable font family name, initializing on first call."""
        if self._family is not None:
            return self._family
        with self._lock:
            if self._family is None:
                try:
                    family = self._initialize()
                except (OSError, TTFError, ValueError, KeyError) as exc:
                    raise RenderBackendInitError(
                        f"Cannot initialize PDF fonts for family {self._config.font_family!r}: {exc}"
                    ) from exc
                self._family = family
                log.info("PDF backend ready (font family %s)", family)
        return self._family

    def face(self, bold: bool = False, italic: bool = False) -> str:
        return tt2ps(self.ensure(), int(bold), int(italic))

    def _initialize(self) -> str:
        family = self._config.font_family
        font_dir = self._config.font_dir
        if font_dir is not None:
            self._register_ttf_family(family, Path(font_dir))
        # Raises for families reportlab cannot resolve
        for bold in (0, 1):
            for italic in (0, 1):
                pdfmetrics.getFont(tt2ps(family, bold, italic))
        return family

    def _register_ttf_family(self, family: str, font_dir: Path) -> None:
        files = self._config.fonts
        normal_path = font_dir / files.normal
        pdfmetrics.registerFont(TTFont(family, str(normal_path)))

        faces = {"normal": family}
        for key, suffix, filename in (
            ("bold", "Bold", files.bold),
            ("italic", "Italic", files.italics),
            ("boldItalic", "BoldItalic", files.bolditalics),
        ):
            path = font_dir / filename
            if not path.is_file():
                log.warning("Font face %s missing at %s; using the regular face", key, path)
                faces[key] = family
                continue
            face_name = f"{family}-{suffix}"
            pdfmetrics.registerFont(TTFont(face_name, str(path)))
            faces[key] = face_name

        registerFontFamily(family, **faces)
        log.debug("Registered TTF family %s from %s", family, font_dir)


@lru_cache(maxsize=None)
def _shared_backend(family: str, font_dir: Optional[Path], files: tuple[str, str, str, str]) -> RenderBackend:
    normal, bold, italics, bolditalics = files
    fonts = FontFiles(normal=normal, bold=bold, italics=italics, bolditalics=bolditalics)
    return RenderBackend(PDFFormattingConfig(font_family=family, font_dir=font_dir, fonts=fonts))


def get_backend(config: PDFFormattingConfig | None = None) -> RenderBackend:
    """The process-wide backend for the font settings in *config*.

    Renderers with the same font family, directory and files share one
    backend, so fonts are set up once per process.
    """
    config = config or PDFFormattingConfig()
    files = config.fonts
    return _shared_backend(
        config.font_family,
        config.font_dir,
        (files.normal, files.bold, files.italics, files.bolditalics),
    )


# ── Numbered canvas ──────────────────────────────────────────────────

PageCallback = Callable[[Any, int, int], None]


class _NumberedCanvas(rl_canvas.Canvas):
    """Two-pass canvas: pages are buffered so each can be decorated with
    the total page count once it is known."""

    def __init__(
        self,
        *args: Any,
        page_callback: Optional[PageCallback] = None,
        info: Optional[DocumentInfo] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict[str, Any]] = []
        self._page_callback = page_callback
        self._document_info = info

    def showPage(self) -> None:  # noqa: N802
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        if not self._saved_page_states:
            self._saved_page_states.append(dict(self.__dict__))
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            if self._page_callback is not None:
                self._page_callback(self, self._pageNumber, total)
            rl_canvas.Canvas.showPage(self)
        self._apply_info()
        rl_canvas.Canvas.save(self)

    def _apply_info(self) -> None:
        if self._document_info is None:
            return
        self.setTitle(self._document_info.title)
        self.setAuthor(self._document_info.author)
        self.setSubject(self._document_info.subject)
        self.setKeywords(self._document_info.keywords)
        self.setCreator(self._document_info.creator)
        self.setProducer(self._document_info.producer)


# ── Description → flowables ──────────────────────────────────────────


def _run_markup(run: TextRun) -> str:
    """reportlab paragraph markup for one run."""
    if run.is_line_break:
        return "<br/>"
    text = html.escape(run.text.replace(ZERO_WIDTH_SPACE, ""), quote=False)
    if run.bold:
        text = f"<b>{text}</b>"
    if run.italics:
        text = f"<i>{text}</i>"
    if run.underline:
        text = f"<u>{text}</u>"
    if run.strike:
        text = f"<strike>{text}</strike>"
    if run.sub:
        text = f"<sub>{text}</sub>"
    if run.sup:
        text = f"<super>{text}</super>"

    attrs = []
    if run.font_size:
        attrs.append(f'size="{run.font_size:g}"')
    if run.color:
        attrs.append(f'color="{run.color}"')
    if attrs:
        text = f"<font {' '.join(attrs)}>{text}</font>"
    if run.link:
        text = f'<a href="{html.escape(run.link, quote=True)}">{text}</a>'
    return text


class _FlowableBuilder:
    """Converts description blocks into reportlab flowables for one render."""

    def __init__(self, description: DocumentDescription, backend: RenderBackend) -> None:
        self._description = description
        self._backend = backend
        self._styles = description.styles
        self._font_size = float(description.default_font_size)

    def _style(self, name: Optional[str]) -> Style:
        return self._styles.get(name or "", Style())

    # ── Text ─────────────────────────────────────────────────────────

    def paragraph(self, text: Text, inherited: Optional[str] = None, alignment: Optional[str] = None) -> Flowable:
        style = self._style(text.style or inherited)
        size = text.font_size or style.font_size or self._font_size
        bold = style.bold if text.bold is None else text.bold
        italics = style.italics if text.italics is None else text.italics
        color = text.color or style.color
        align = text.alignment or alignment or style.alignment or "left"

        markup = "".join(_run_markup(run) for run in text.runs)
        if not self._backend.uses_ttf:
            markup = _sanitize_text(markup)
        if bold:
            markup = f"<b>{markup}</b>"
        if italics:
            markup = f"<i>{markup}</i>"

        left, top, right, bottom = (a + b for a, b in zip(text.margin, style.margin))
        paragraph_style = ParagraphStyle(
            text.style or inherited or "text",
            fontName=self._backend.face(),
            fontSize=size,
            leading=size * 1.25,
            textColor=_hex(color) if color else rl_colors.black,
            alignment=_ALIGNMENTS.get(align, TA_LEFT),
            leftIndent=left,
            rightIndent=right,
            spaceBefore=top,
            spaceAfter=bottom,
        )
        return _RawParagraph(markup, paragraph_style)

    # ── Blocks ───────────────────────────────────────────────────────

    def flowables(
        self,
        block: Optional[Block],
        width: float,
        inherited: Optional[str] = None,
        alignment: Optional[str] = None,
    ) -> list[Flowable]:
        if block is None:
            return []
        if isinstance(block, Text):
            return [self.paragraph(block, inherited, alignment)]
        if isinstance(block, Stack):
            items: list[Flowable] = []
            for item in block.items:
                items.extend(self.flowables(item, width, block.style or inherited, alignment))
            return items
        if isinstance(block, Image):
            return self.image(block)
        if isinstance(block, Table):
            if block.vertical_center:
                return self.flowables(_shim_content(block), width, inherited, alignment)
            return [self.table(block, width, inherited)]
        if isinstance(block, Empty):
            bottom = block.margin[3]
            return [Spacer(0, bottom)] if bottom > 0 else []
        raise RenderError(f"Unsupported block type {type(block).__name__}")

    def image(self, image: Image) -> list[Flowable]:
        payload = image.data.split(",", 1)[1] if image.data.startswith("data:") else image.data
        try:
            raw = base64.b64decode(payload, validate=True)
            flowable = _RawImage(BytesIO(raw), width=image.width, height=image.height)
        except (ValueError, binascii.Error, OSError):
            log.warning("Skipping image with undecodable data")
            return []
        flowable.hAlign = image.alignment.upper()
        return [flowable]

    # ── Tables ───────────────────────────────────────────────────────

    def table(self, table: Table, width: float, inherited: Optional[str] = None) -> _RawTable:
        left, top, right, bottom = table.margin
        width = max(width - max(left, 0.0) - max(right, 0.0), 1.0)
        columns = len(table.widths)
        col_widths = self.column_widths(table, width)
        layout = table.layout

        commands: list[tuple[Any, ...]] = [
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), layout.padding_h),
            ("RIGHTPADDING", (0, 0), (-1, -1), layout.padding_h),
            ("TOPPADDING", (0, 0), (-1, -1), layout.padding_v),
            ("BOTTOMPADDING", (0, 0), (-1, -1), layout.padding_v),
        ]
        commands.extend(self._line_commands(table))

        data: list[list[Any]] = []
        for r, row in enumerate(table.body):
            unpadded = layout.group_rows_unpadded and bool(row) and row[0].is_group
            if unpadded:
                for side in ("LEFTPADDING", "RIGHTPADDING", "TOPPADDING", "BOTTOMPADDING"):
                    commands.append((side, (0, r), (-1, r), 0))
            pad_h = 0.0 if unpadded else layout.padding_h
            pad_v = 0.0 if unpadded else layout.padding_v

            cells: list[Any] = []
            for c, cell in enumerate(row[:columns]):
                if cell.is_placeholder:
                    cells.append("")
                    continue
                span = max(1, min(cell.col_span, columns - c))
                cells.append(self._cell(table, cell, r, c, span, col_widths, pad_h, pad_v, commands, inherited))
            cells.extend([""] * (columns - len(cells)))
            data.append(cells)

        header_rows = min(table.header_rows, len(data))
        keep = header_rows + table.keep_with_header_rows
        if table.keep_with_header_rows and keep <= len(data):
            commands.append(("NOSPLIT", (0, 0), (-1, keep - 1)))

        flowable = _RawTable(data, colWidths=col_widths, repeatRows=header_rows, hAlign="LEFT")
        flowable.setStyle(TableStyle(commands))
        flowable.spaceBefore = max(top, 0.0)
        flowable.spaceAfter = max(bottom, 0.0)
        return flowable

    def _cell(
        self,
        table: Table,
        cell: Cell,
        r: int,
        c: int,
        span: int,
        col_widths: list[float],
        pad_h: float,
        pad_v: float,
        commands: list[tuple[Any, ...]],
        inherited: Optional[str],
    ) -> Any:
        last = (c + span - 1, r)
        if span > 1:
            commands.append(("SPAN", (c, r), last))

        fill = cell.fill_color or self._style(cell.style).fill_color
        if fill:
            commands.append(("BACKGROUND", (c, r), last, _hex(fill)))
        if _is_shim(cell.content):
            commands.append(("VALIGN", (c, r), (c, r), "MIDDLE"))

        ml, mt, mr, mb = cell.margin
        left, right = max(pad_h + ml, 0.0), max(pad_h + mr, 0.0)
        if any(cell.margin):
            commands.extend(
                [
                    ("LEFTPADDING", (c, r), (c, r), left),
                    ("RIGHTPADDING", (c, r), (c, r), right),
                    ("TOPPADDING", (c, r), (c, r), max(pad_v + mt, 0.0)),
                    ("BOTTOMPADDING", (c, r), (c, r), max(pad_v + mb, 0.0)),
                ]
            )

        inner_width = max(sum(col_widths[c : c + span]) - left - right, 1.0)
        content = self.flowables(cell.content, inner_width, cell.style or inherited, cell.alignment)
        return content or ""

    def _line_commands(self, table: Table) -> list[tuple[Any, ...]]:
        layout = table.layout
        if layout.line_width <= 0:
            return []
        width, color = layout.line_width, _hex(layout.line_color)
        commands: list[tuple[Any, ...]] = []
        if layout.hlines:
            commands.append(("LINEABOVE", (0, 0), (-1, -1), width, color))
            commands.append(("LINEBELOW", (0, -1), (-1, -1), width, color))
        if layout.outer_vlines:
            commands.append(("LINEBEFORE", (0, 0), (0, -1), width, color))
            commands.append(("LINEAFTER", (-1, 0), (-1, -1), width, color))
        if layout.inner_vlines and len(table.widths) > 1:
            commands.append(("LINEAFTER", (0, 0), (-2, -1), width, color))
        return commands

    def column_widths(self, table: Table, width: float) -> list[float]:
        """Resolve ``auto`` / ``*`` / numeric widths against *width*."""
        resolved: dict[int, float] = {}
        for i, width_spec in enumerate(table.widths):
            if isinstance(width_spec, (int, float)):
                resolved[i] = float(width_spec)
            elif width_spec == "auto":
                resolved[i] = self._auto_width(table, i, width)

        stars = [i for i in range(len(table.widths)) if i not in resolved]
        fixed = sum(resolved.values())
        if stars and fixed > width * 0.75:
            scale = width * 0.75 / fixed
            resolved = {i: w * scale for i, w in resolved.items()}
            fixed = width * 0.75
        share = max(width - fixed, 0.0) / len(stars) if stars else 0.0
        return [resolved.get(i, share) for i in range(len(table.widths))]

    def _auto_width(self, table: Table, column: int, width: float) -> float:
        widest = 0.0
        for row in table.body:
            if column >= len(row):
                continue
            cell = row[column]
            if cell.is_placeholder or cell.col_span > 1:
                continue
            widest = max(widest, self._measure(cell.content, cell.style))
        padding = 2 * table.layout.padding_h
        return min(widest + padding + 1.0, width * _AUTO_COLUMN_MAX_SHARE)

    def _measure(self, block: Optional[Block], inherited: Optional[str]) -> float:
        """Width of the widest unwrapped line of *block*."""
        if isinstance(block, Text):
            style = self._style(block.style or inherited)
            size = block.font_size or style.font_size or self._font_size
            bold = style.bold if block.bold is None else block.bold
            face = self._backend.face(bold=bold)
            lines = block.plain_text.replace(ZERO_WIDTH_SPACE, "").split("\n")
            return max(stringWidth(line, face, size) for line in lines)
        if isinstance(block, Stack):
            return max((self._measure(item, block.style or inherited) for item in block.items), default=0.0)
        if isinstance(block, Table) and block.vertical_center:
            return self._measure(_shim_content(block), inherited)
        if isinstance(block, Image):
            return block.width
        return 0.0


# ── Preview resources ────────────────────────────────────────────────


@dataclass
class PreviewResource:
    """A rendered PDF held in a temporary file until released."""

    path: Path
    data: bytes = field(repr=False)
    _released: bool = field(default=False, init=False, repr=False)

    @property
    def uri(self) -> str:
        return self.path.as_uri()

    @property
    def data_url(self) -> str:
        return f"data:{PDF_CONTENT_TYPE};base64," + base64.b64encode(self.data).decode("ascii")

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Delete the temporary file.  Releasing twice is a no-op."""
        if self._released:
            return
        self._released = True
        self.path.unlink(missing_ok=True)
        log.debug("Released preview %s", self.path)

    def __enter__(self) -> PreviewResource:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()


# ── PDFRenderer ──────────────────────────────────────────────────────


class PDFRenderer:
    """Renders a DocumentDescription to PDF with reportlab."""

    def __init__(self, config: PDFFormattingConfig | None = None, backend: RenderBackend | None = None) -> None:
        self._config = config or PDFFormattingConfig()
        self._backend = backend or get_backend(self._config)

    @property
    def backend(self) -> RenderBackend:
        return self._backend

    # ── IOutputFormatter ─────────────────────────────────────────────

    def format(self, description: DocumentDescription, **kwargs: Any) -> bytes:
        return self.render_bytes(description)

    def format_to_file(self, description: DocumentDescription, path: Path, **kwargs: Any) -> Path:
        """Write PDF to *path* and return it."""
        path.write_bytes(self.render_bytes(description))
        return path

    @property
    def content_type(self) -> str:
        return PDF_CONTENT_TYPE

    # ── Public API ───────────────────────────────────────────────────

    def render_bytes(self, description: DocumentDescription) -> bytes:
        """Render *description* to PDF bytes."""
        self._backend.ensure()
        flowables = _FlowableBuilder(description, self._backend)

        page_size = _PAGE_SIZES.get(description.page_size.lower(), LETTER)
        if description.page_orientation == "landscape":
            page_size = landscape(page_size)
        left, top, right, bottom = description.page_margins
        content_width = float(page_size[0]) - left - right

        story: list[Flowable] = []
        for block in description.content:
            story.extend(flowables.flowables(block, content_width))
        if not story:
            story.append(Spacer(0, 0))

        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=page_size,
            leftMargin=left,
            rightMargin=right,
            topMargin=top,
            bottomMargin=bottom,
            encrypt=self._encryption(description),
        )
        if description.info is not None and not description.info.tagged:
            log.debug("Untagged output requested; reportlab output is always untagged")

        canvasmaker = partial(
            _NumberedCanvas,
            page_callback=partial(self._draw_header, description, flowables, page_size),
            info=description.info,
        )
        try:
            doc.build(story, canvasmaker=canvasmaker)
        except (LayoutError, ValueError, OSError) as exc:
            raise RenderError(f"PDF rendering failed: {exc}") from exc

        data = buffer.getvalue()
        log.info("Rendered PDF %r (%d bytes)", description.title, len(data))
        return data

    def to_preview_resource(self, description: DocumentDescription) -> PreviewResource:
        """Render to a temporary file the caller must release."""
        data = self.render_bytes(description)
        with tempfile.NamedTemporaryFile(prefix="formdoc-", suffix=".pdf", delete=False) as handle:
            handle.write(data)
        return PreviewResource(path=Path(handle.name), data=data)

    def download(
        self,
        description: DocumentDescription,
        title: Optional[str] = None,
        directory: Optional[Path] = None,
    ) -> Path:
        """Write ``<sanitized title>.pdf`` into *directory* and return its path."""
        directory = Path(directory) if directory is not None else Path.cwd()
        directory.mkdir(parents=True, exist_ok=True)
        name = sanitize_filename(description.title if title is None else title, self._config.default_filename)
        path = directory / f"{name}.pdf"
        path.write_bytes(self.render_bytes(description))
        log.info("Saved PDF to %s", path)
        return path

    # ── Internals ────────────────────────────────────────────────────

    @staticmethod
    def _encryption(description: DocumentDescription) -> Optional[StandardEncryption]:
        security = description.security
        if security is None:
            return None
        return StandardEncryption(
            security.user_password or "",
            ownerPassword=security.owner_password,
            canPrint=int(security.printing),
            canModify=int(security.modifying),
            canCopy=int(security.copying),
        )

    @staticmethod
    def _draw_header(
        description: DocumentDescription,
        flowables: _FlowableBuilder,
        page_size: tuple[float, float],
        canv: Any,
        page: int,
        page_count: int,
    ) -> None:
        if description.header is None:
            return
        header = description.header(page, page_count)
        if header is None:
            return
        page_width, page_height = float(page_size[0]), float(page_size[1])
        left, top, right, _ = description.header_margins
        width = page_width - left - right
        table = flowables.table(header, width)
        _, height = table.wrapOn(canv, width, page_height)
        table.drawOn(canv, left, page_height - top - height)
