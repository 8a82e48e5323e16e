"""
Domain layer for DOCX to PDF conversion.
Provides the font catalog and selection heuristic, gateway interfaces for
document extraction and PDF rendering, and a service that sequences a
conversion so front-ends (HTTP or others) can share the same core logic.
"""

from .errors import (
    ConversionError,
    ConversionFailure,
    EmptyInput,
    ImageEmbedFailure,
    NoTextContent,
    UnrecognizedDocument,
)
from .fonts import FONT_CATALOG, FontDescriptor, FontManager, LoadedFont
from .interfaces import ConversionResult, DocumentExtractor, ExtractedDocument, ExtractedImage, PdfDocument
from .service import ConversionService, split_paragraphs
