import base64

import pytest

from docx_pdf_service.conversion import (
    ConversionService,
    ExtractedDocument,
    ExtractedImage,
    FontManager,
    ImageEmbedFailure,
    UnrecognizedDocument,
    split_paragraphs,
)


class FakeExtractor:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0
        self.received = []

    def extract(self, docx_bytes):
        self.calls += 1
        self.received.append(docx_bytes)
        if self.error is not None:
            raise self.error
        return self.result


class RecordingPdf:
    def __init__(self, image_error=None, finish_error=None):
        self.calls = []
        self.image_error = image_error
        self.finish_error = finish_error

    def use_font(self, font):
        self.calls.append(("font", font.name if font else None))

    def add_paragraph(self, text):
        self.calls.append(("paragraph", text))

    def new_page(self):
        self.calls.append(("page",))

    def add_image(self, data, content_type):
        if self.image_error is not None:
            raise self.image_error
        self.calls.append(("image", content_type))

    def add_notice(self, text):
        self.calls.append(("notice", text))

    def finish(self):
        if self.finish_error is not None:
            raise self.finish_error
        return b"%PDF-fake"


def _service(fonts, extractor, pdf=None):
    pdf = pdf or RecordingPdf()
    return ConversionService(fonts, extractor, lambda: pdf), pdf


def test_split_paragraphs_on_blank_lines():
    text = "first\nstill first\n\n\nsecond\n \t\nthird\n\n   \n\n"
    assert split_paragraphs(text) == ["first\nstill first", "second", "third"]


def test_empty_input_skips_extraction(both_fonts):
    extractor = FakeExtractor(ExtractedDocument("text"))
    svc, _ = _service(both_fonts, extractor)

    result = svc.convert(b"", "empty.docx")

    assert not result.ok
    assert result.pdf_bytes is None
    assert result.error_code == "empty_input"
    assert extractor.calls == 0


def test_whitespace_only_text_is_rejected(both_fonts):
    svc, pdf = _service(both_fonts, FakeExtractor(ExtractedDocument(" \n\n\t ")))

    result = svc.convert(b"docx", "blank.docx")

    assert result.error_code == "no_text_content"
    assert result.error == "No text content found in the document."
    assert pdf.calls == []


def test_image_only_document_has_no_text_content(both_fonts):
    doc = ExtractedDocument("", (ExtractedImage(b"png", "image/png"),))
    svc, _ = _service(both_fonts, FakeExtractor(doc))

    assert svc.convert(b"docx", "picture.docx").error_code == "no_text_content"


def test_each_paragraph_gets_its_own_font(both_fonts):
    doc = ExtractedDocument("Hello there\n\n你好世界\n\nSecond Latin paragraph")
    svc, pdf = _service(both_fonts, FakeExtractor(doc))

    result = svc.convert(b"docx", "mixed.docx")

    assert result.ok
    assert result.pdf_bytes == b"%PDF-fake"
    assert pdf.calls == [
        ("font", "DejaVuSans"),
        ("paragraph", "Hello there"),
        ("font", "NotoSansSC"),
        ("paragraph", "你好世界"),
        ("font", "DejaVuSans"),
        ("paragraph", "Second Latin paragraph"),
    ]


def test_no_fonts_uses_renderer_default():
    svc, pdf = _service(FontManager(), FakeExtractor(ExtractedDocument("Hello")))

    assert svc.convert(b"docx", "plain.docx").ok
    assert pdf.calls[0] == ("font", None)


def test_images_each_start_a_page(both_fonts):
    doc = ExtractedDocument(
        "Body",
        (ExtractedImage(b"a", "image/png"), ExtractedImage(b"b", "image/jpeg")),
    )
    svc, pdf = _service(both_fonts, FakeExtractor(doc))

    assert svc.convert(b"docx", "pics.docx").ok
    assert pdf.calls[2:] == [("page",), ("image", "image/png"), ("page",), ("image", "image/jpeg")]


def test_unsupported_image_type_becomes_placeholder(both_fonts):
    doc = ExtractedDocument("Body", (ExtractedImage(b"BM", "image/bmp"),))
    svc, pdf = _service(both_fonts, FakeExtractor(doc))

    result = svc.convert(b"docx", "bitmap.docx")

    assert result.ok
    assert pdf.calls[2:] == [
        ("page",),
        ("font", "DejaVuSans"),
        ("notice", "[Unsupported image type: image/bmp]"),
    ]


def test_image_embed_failure_is_not_fatal(both_fonts):
    doc = ExtractedDocument("Body", (ExtractedImage(b"x", "image/png"),))
    pdf = RecordingPdf(image_error=ImageEmbedFailure("cannot identify image file"))
    svc, _ = _service(both_fonts, FakeExtractor(doc), pdf)

    result = svc.convert(b"docx", "broken.docx")

    assert result.ok
    assert pdf.calls[-1] == ("notice", "[Error embedding image: cannot identify image file]")


def test_unexpected_image_error_is_not_fatal(both_fonts):
    doc = ExtractedDocument("Body", (ExtractedImage(b"x", "image/jpeg"),))
    pdf = RecordingPdf(image_error=RuntimeError("boom"))
    svc, _ = _service(both_fonts, FakeExtractor(doc), pdf)

    assert svc.convert(b"docx", "broken.docx").ok
    assert pdf.calls[-1] == ("notice", "[Error embedding image: boom]")


def test_unrecognized_document_gets_friendly_message(both_fonts):
    svc, _ = _service(both_fonts, FakeExtractor(error=UnrecognizedDocument()))

    result = svc.convert(b"not a docx", "notes.txt")

    assert result.error_code == "unrecognized_document"
    assert "does not appear to be a valid .docx" in result.error


def test_unexpected_extraction_error_is_wrapped(both_fonts):
    svc, _ = _service(both_fonts, FakeExtractor(error=RuntimeError("parser exploded")))

    result = svc.convert(b"docx", "odd.docx")

    assert result.error_code == "conversion_failed"
    assert result.error == "Failed to convert Word document. parser exploded"


def test_finalization_failure_is_fatal(both_fonts):
    pdf = RecordingPdf(finish_error=OSError("disk full"))
    svc, _ = _service(both_fonts, FakeExtractor(ExtractedDocument("Body")), pdf)

    result = svc.convert(b"docx", "big.docx")

    assert result.error_code == "conversion_failed"
    assert result.error.startswith("Failed to finalize PDF document.")


def test_convert_base64_round_trip(both_fonts):
    svc, _ = _service(both_fonts, FakeExtractor(ExtractedDocument("Body")))

    result = svc.convert_base64(base64.b64encode(b"docx").decode(), "doc.docx")

    assert result.ok
    assert result.data_uri == "data:application/pdf;base64," + base64.b64encode(b"%PDF-fake").decode()


def test_convert_base64_accepts_line_wrapped_payload(both_fonts):
    extractor = FakeExtractor(ExtractedDocument("Body"))
    svc, _ = _service(both_fonts, extractor)
    raw = bytes(range(256)) * 2
    wrapped = base64.encodebytes(raw).decode()
    assert "\n" in wrapped

    result = svc.convert_base64(wrapped, "wrapped.docx")

    assert result.ok
    assert extractor.received == [raw]


@pytest.mark.parametrize("payload", ["", "!!not base64!!"])
def test_convert_base64_rejects_bad_payload(both_fonts, payload):
    extractor = FakeExtractor(ExtractedDocument("Body"))
    svc, _ = _service(both_fonts, extractor)

    result = svc.convert_base64(payload, "doc.docx")

    assert result.error_code == "empty_input"
    assert result.data_uri is None
    assert extractor.calls == 0


def test_available_fonts(both_fonts):
    svc, _ = _service(both_fonts, FakeExtractor())
    assert svc.available_fonts() == ["NotoSansSC", "DejaVuSans"]
