import io
import logging
import zipfile
from xml.sax.saxutils import escape

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn
from docx.table import Table
from PIL import Image as PILImage
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Flowable, Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer

from .errors import ConversionFailure, ImageEmbedFailure, UnrecognizedDocument
from .fonts import LoadedFont
from .interfaces import DocumentExtractor, ExtractedDocument, ExtractedImage, PdfDocument

logger = logging.getLogger(__name__)


class DocxExtractor(DocumentExtractor):
    """Plain text and embedded images from a DOCX package, via python-docx."""

    def extract(self, docx_bytes: bytes) -> ExtractedDocument:
        try:
            doc = Document(io.BytesIO(docx_bytes))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as e:
            raise UnrecognizedDocument() from e
        except ValueError as e:
            # python-docx rejects other OPC packages (xlsx, pptx) by content type
            if "not a Word file" in str(e):
                raise UnrecognizedDocument() from e
            raise ConversionFailure.from_exception(e) from e

        try:
            text = "\n\n".join(self._iter_paragraph_texts(doc))
            images = tuple(self._iter_images(doc))
        except (KeyError, ValueError, AttributeError) as e:
            raise ConversionFailure.from_exception(e) from e
        return ExtractedDocument(text=text, images=images)

    def _iter_paragraph_texts(self, doc):
        for block in doc.iter_inner_content():
            if isinstance(block, Table):
                yield from self._iter_table_texts(block)
            else:
                yield block.text

    def _iter_table_texts(self, table: Table):
        # holds the <w:tc> elements themselves; merged cells repeat across the grid
        seen = set()
        for row in table.rows:
            for cell in row.cells:
                if cell._tc in seen:
                    continue
                seen.add(cell._tc)
                for paragraph in cell.paragraphs:
                    yield paragraph.text
                for nested in cell.tables:
                    yield from self._iter_table_texts(nested)

    def _iter_images(self, doc):
        related = doc.part.related_parts
        for blip in doc.element.body.iter(qn("a:blip")):
            rel_id = blip.get(qn("r:embed"))
            part = related.get(rel_id) if rel_id else None
            if part is None:
                # externally linked picture, nothing to embed
                continue
            yield ExtractedImage(data=part.blob, content_type=part.content_type)


PAGE_WIDTH, PAGE_HEIGHT = LETTER
MARGIN = 72
FONT_SIZE = 12
LINE_GAP = 4
PARAGRAPH_GAP = 8
NOTICE_FONT_SIZE = 10
DEFAULT_FONT = "Helvetica"
# SimpleDocTemplate frames pad 6pt on every side
_FRAME_PADDING = 6
FRAME_WIDTH = PAGE_WIDTH - 2 * MARGIN - 2 * _FRAME_PADDING
FRAME_HEIGHT = PAGE_HEIGHT - 2 * MARGIN - 2 * _FRAME_PADDING


def _register_font(font: LoadedFont) -> str:
    """Register ``font`` with reportlab once per process and return its name."""
    if font.name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(font.name, io.BytesIO(font.data)))
    return font.name


def _markup(text: str) -> str:
    return escape(text).replace("\n", "<br/>")


class ReportLabPdfDocument(PdfDocument):
    """Collects platypus flowables and lays them out on US Letter pages."""

    def __init__(self, title: str | None = None) -> None:
        self._title = title
        self._story: list[Flowable] = []
        self._font_name = DEFAULT_FONT
        self._word_wrap: str | None = None
        self._unusable: set[LoadedFont] = set()

    @property
    def font_name(self) -> str:
        return self._font_name

    def use_font(self, font: LoadedFont | None) -> None:
        if font is None or font in self._unusable:
            self._font_name, self._word_wrap = DEFAULT_FONT, None
            return
        try:
            self._font_name = _register_font(font)
            self._word_wrap = font.descriptor.word_wrap
        except Exception as e:
            logger.warning("Font %s could not be registered, falling back to %s: %s", font.name, DEFAULT_FONT, e)
            self._unusable.add(font)
            self._font_name, self._word_wrap = DEFAULT_FONT, None

    def _style(self, name: str, **overrides) -> ParagraphStyle:
        base = dict(
            fontName=self._font_name,
            fontSize=FONT_SIZE,
            leading=FONT_SIZE + LINE_GAP,
            alignment=TA_LEFT,
            spaceAfter=PARAGRAPH_GAP + FONT_SIZE / 2,
        )
        if self._word_wrap:
            base["wordWrap"] = self._word_wrap
        base.update(overrides)
        return ParagraphStyle(name, **base)

    def add_paragraph(self, text: str) -> None:
        self._story.append(Paragraph(_markup(text), self._style("body")))

    def new_page(self) -> None:
        if self._story:
            self._story.append(PageBreak())

    def add_image(self, data: bytes, content_type: str) -> None:
        try:
            with PILImage.open(io.BytesIO(data)) as im:
                im.load()
                width, height = im.size
        except (OSError, ValueError, PILImage.DecompressionBombError) as e:
            raise ImageEmbedFailure(str(e) or f"unreadable {content_type} data") from e
        if not width or not height:
            raise ImageEmbedFailure(f"image has no area ({width}x{height})")

        scale = min(FRAME_WIDTH / width, FRAME_HEIGHT / height)
        draw_w, draw_h = width * scale, height * scale
        flowable = Image(io.BytesIO(data), width=draw_w, height=draw_h)
        flowable.hAlign = "CENTER"
        self._story.append(Spacer(1, (FRAME_HEIGHT - draw_h) / 2))
        self._story.append(flowable)

    def add_notice(self, text: str) -> None:
        style = self._style(
            "notice",
            fontSize=NOTICE_FONT_SIZE,
            leading=NOTICE_FONT_SIZE + LINE_GAP,
            alignment=TA_CENTER,
            spaceAfter=0,
        )
        self._story.append(Paragraph(_markup(text), style))

    def finish(self) -> bytes:
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=LETTER,
            leftMargin=MARGIN,
            rightMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
            title=self._title or "",
        )
        doc.build(self._story)
        return buf.getvalue()
