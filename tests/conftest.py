import io

import pytest
from docx import Document
from PIL import Image

from docx_pdf_service.conversion import FONT_CATALOG, FontManager, LoadedFont


def image_bytes(fmt: str = "PNG", size: tuple[int, int] = (40, 20)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buf, format=fmt)
    return buf.getvalue()


def docx_bytes(paragraphs=(), images=(), table=None) -> bytes:
    """Build a .docx in memory: paragraphs first, then an optional table, then images."""
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        t = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                t.cell(r, c).text = value
    for data in images:
        doc.add_picture(io.BytesIO(data))
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_docx():
    return docx_bytes


@pytest.fixture
def make_image():
    return image_bytes


@pytest.fixture
def catalog_fonts() -> dict[str, LoadedFont]:
    """Catalog fonts with placeholder data; selection never parses the bytes."""
    return {d.name: LoadedFont(descriptor=d, data=b"placeholder") for d in FONT_CATALOG}


@pytest.fixture
def both_fonts(catalog_fonts) -> FontManager:
    return FontManager([catalog_fonts["NotoSansSC"], catalog_fonts["DejaVuSans"]])
