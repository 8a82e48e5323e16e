import base64
import binascii
import logging
import re

from .errors import ConversionError, ConversionFailure, EmptyInput, NoTextContent
from .fonts import FontManager
from .interfaces import ConversionResult, DocumentExtractor, ExtractedImage, PdfDocument, PdfDocumentFactory

logger = logging.getLogger(__name__)

SUPPORTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png"})

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> list[str]:
    """Split on blank lines, dropping paragraphs that are empty once stripped."""
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


class ConversionService:
    """Turns DOCX bytes into PDF bytes.

    Framework-agnostic: the HTTP layer and tests supply the extractor and the
    PDF factory. The font manager is shared and never mutated here. Fatal
    errors become a failed ``ConversionResult``; a bad image only costs its
    own page.
    """

    def __init__(
        self,
        font_manager: FontManager,
        extractor: DocumentExtractor,
        pdf_factory: PdfDocumentFactory,
    ) -> None:
        self._fonts = font_manager
        self._extractor = extractor
        self._pdf_factory = pdf_factory

    @property
    def font_manager(self) -> FontManager:
        return self._fonts

    def available_fonts(self) -> list[str]:
        return self._fonts.list_loaded_fonts()

    def convert(self, docx_bytes: bytes, file_name: str) -> ConversionResult:
        logger.info("Converting %s (fonts: %s)", file_name, ", ".join(self.available_fonts()) or "built-in")
        try:
            pdf_bytes = self._convert(docx_bytes, file_name)
        except ConversionError as e:
            logger.warning("Conversion of %s failed: %s", file_name, e.message)
            return ConversionResult.failure(e.message, e.code)
        except Exception as e:
            logger.exception("Unexpected error converting %s", file_name)
            failure = ConversionFailure.from_exception(e)
            return ConversionResult.failure(failure.message, failure.code)
        logger.info("Converted %s (%d bytes of PDF)", file_name, len(pdf_bytes))
        return ConversionResult.success(pdf_bytes)

    def convert_base64(self, docx_base64: str, file_name: str) -> ConversionResult:
        """Same as ``convert`` for callers that transport the document as base64."""
        if not docx_base64:
            return ConversionResult.failure(EmptyInput.default_message, EmptyInput.code)
        # line-wrapped (MIME style) payloads are accepted
        compact = "".join(docx_base64.split())
        try:
            docx_bytes = base64.b64decode(compact, validate=True)
        except (binascii.Error, ValueError):
            return ConversionResult.failure("DOCX file data is not valid base64.", EmptyInput.code)
        if not docx_bytes:
            return ConversionResult.failure(
                "Empty DOCX file data received after base64 decoding.", EmptyInput.code
            )
        return self.convert(docx_bytes, file_name)

    def _convert(self, docx_bytes: bytes, file_name: str) -> bytes:
        if not docx_bytes:
            raise EmptyInput()

        document = self._extractor.extract(docx_bytes)
        if not document.text.strip():
            raise NoTextContent()

        pdf = self._pdf_factory()
        for paragraph in split_paragraphs(document.text):
            pdf.use_font(self._fonts.select_font(paragraph))
            pdf.add_paragraph(paragraph)

        for image in document.images:
            pdf.new_page()
            self._add_image(pdf, image, file_name)

        try:
            return pdf.finish()
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionFailure(f"Failed to finalize PDF document. {e}") from e

    def _add_image(self, pdf: PdfDocument, image: ExtractedImage, file_name: str) -> None:
        if image.content_type not in SUPPORTED_IMAGE_TYPES:
            logger.warning("Skipping image with unsupported content type %s in %s", image.content_type, file_name)
            self._add_notice(pdf, f"[Unsupported image type: {image.content_type}]")
            return
        try:
            pdf.add_image(image.data, image.content_type)
        except Exception as e:
            logger.exception("Error embedding %s image in %s", image.content_type, file_name)
            message = getattr(e, "message", None) or str(e) or e.__class__.__name__
            self._add_notice(pdf, f"[Error embedding image: {message}]")

    def _add_notice(self, pdf: PdfDocument, text: str) -> None:
        pdf.use_font(self._fonts.select_font(text))
        pdf.add_notice(text)
