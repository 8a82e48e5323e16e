import base64
from dataclasses import dataclass, field
from typing import Callable, Protocol

from .fonts import LoadedFont


@dataclass(frozen=True)
class ExtractedImage:
    data: bytes
    content_type: str


@dataclass(frozen=True)
class ExtractedDocument:
    text: str
    images: tuple[ExtractedImage, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ConversionResult:
    pdf_bytes: bytes | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, pdf_bytes: bytes) -> "ConversionResult":
        return cls(pdf_bytes=pdf_bytes)

    @classmethod
    def failure(cls, message: str, code: str) -> "ConversionResult":
        return cls(error=message, error_code=code)

    @property
    def ok(self) -> bool:
        return self.pdf_bytes is not None

    @property
    def data_uri(self) -> str | None:
        if self.pdf_bytes is None:
            return None
        return "data:application/pdf;base64," + base64.b64encode(self.pdf_bytes).decode("ascii")


class DocumentExtractor(Protocol):
    def extract(self, docx_bytes: bytes) -> ExtractedDocument:
        """Return the plain text and embedded images of a DOCX payload.

        Raises ``UnrecognizedDocument`` when the payload is not an Office
        Open XML word-processing package.
        """


class PdfDocument(Protocol):
    """A PDF under construction. Starts with no pages."""

    def use_font(self, font: LoadedFont | None) -> None:
        """Apply ``font`` to subsequent text; ``None`` selects the built-in font."""

    def add_paragraph(self, text: str) -> None:
        ...

    def new_page(self) -> None:
        ...

    def add_image(self, data: bytes, content_type: str) -> None:
        """Embed a raster image scaled to fit the page margins, centered.

        Raises ``ImageEmbedFailure`` if the image cannot be embedded.
        """

    def add_notice(self, text: str) -> None:
        """Write a short centered line, used for image placeholders."""

    def finish(self) -> bytes:
        ...


PdfDocumentFactory = Callable[[], PdfDocument]
