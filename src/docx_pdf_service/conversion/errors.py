class ConversionError(Exception):
    """Base for conversion failures that carry a user-facing message."""

    code = "conversion_error"
    default_message = "Document conversion failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class EmptyInput(ConversionError):
    code = "empty_input"
    default_message = "No DOCX file data provided for conversion."


class NoTextContent(ConversionError):
    code = "no_text_content"
    default_message = "No text content found in the document."


class UnrecognizedDocument(ConversionError):
    code = "unrecognized_document"
    default_message = "The uploaded file does not appear to be a valid .docx file or is corrupted."


class ConversionFailure(ConversionError):
    code = "conversion_failed"
    default_message = "Failed to convert Word document."

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ConversionFailure":
        detail = str(exc) or exc.__class__.__name__
        return cls(f"{cls.default_message} {detail}")


class ImageEmbedFailure(ConversionError):
    """Raised by renderers for a single image; never fatal for the document."""

    code = "image_embed_failed"
    default_message = "Failed to embed image."
