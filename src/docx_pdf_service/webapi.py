import asyncio
import logging
import os
from pathlib import Path

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from docx_pdf_service.conversion import ConversionResult, ConversionService, FontManager
from docx_pdf_service.conversion.adapters import DocxExtractor, ReportLabPdfDocument

logger = logging.getLogger(__name__)

app = FastAPI(
    title="DOCX to PDF Conversion Service",
    version=os.getenv("DOCX_PDF_SERVICE_VERSION", "0.1.0"),
    description=(
        "RESTful API for converting Word documents into PDF with per-paragraph "
        "font selection for Latin, Cyrillic, Greek and CJK text."
    ),
)

# Global configuration defaults
FONTS_DIR = Path(os.getenv("FONTS_DIR", "./assets/fonts")).resolve()
MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "50"))
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ALLOWED_MIME = {DOCX_MIME, "application/octet-stream"}

ERROR_STATUS = {
    "empty_input": 400,
    "no_text_content": 422,
    "unrecognized_document": 415,
    "conversion_failed": 500,
}

SERVICE: ConversionService | None = None


class Base64ConvertRequest(BaseModel):
    docx_file_base64: str
    original_file_name: str = "document.docx"


def build_service(fonts_dir: str | Path) -> ConversionService:
    fonts = FontManager.from_directory(fonts_dir)
    return ConversionService(
        font_manager=fonts,
        extractor=DocxExtractor(),
        pdf_factory=ReportLabPdfDocument,
    )


def _pdf_filename(original_name: str) -> str:
    stem = Path(original_name).stem or "document"
    # keep the Content-Disposition header well formed
    stem = stem.replace('"', "").replace("\r", "").replace("\n", "")
    return f"{stem}.pdf"


def _status_for(result: ConversionResult) -> int:
    return ERROR_STATUS.get(result.error_code or "", 500)


@app.on_event("startup")
async def _startup() -> None:
    # Fonts are read once and shared read-only by every request
    global SERVICE
    SERVICE = build_service(FONTS_DIR)
    logger.info("Service ready, fonts: %s", ", ".join(SERVICE.available_fonts()) or "built-in only")


@app.get("/health")
def health() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "ok"}


@app.get("/fonts")
def fonts() -> dict[str, list[str]]:
    """Loaded fonts in selection priority order."""
    assert SERVICE is not None
    return {"fonts": SERVICE.available_fonts()}


@app.post("/convert")
async def convert(file: UploadFile = File(...)) -> Response:
    """Convert an uploaded .docx file and return the PDF as an attachment.

    Accepts multipart/form-data with a single required part named "file".
    Errors are returned as JSON with a code and a user-facing message.
    """
    ct = (file.content_type or "").strip().lower()
    fn = file.filename or "upload.docx"
    if ct and ct not in ALLOWED_MIME and not fn.lower().endswith(".docx"):
        raise HTTPException(status_code=415, detail={"code": "unsupported_media_type", "message": f"content-type {file.content_type} not allowed"})

    data = bytearray()
    CHUNK = 1024 * 1024
    max_bytes = MAX_UPLOAD_MB * 1024 * 1024
    while True:
        chunk = await file.read(CHUNK)
        if not chunk:
            break
        data.extend(chunk)
        if len(data) > max_bytes:
            raise HTTPException(status_code=413, detail={"code": "payload_too_large", "message": f"upload exceeds {MAX_UPLOAD_MB} MB"})

    assert SERVICE is not None
    result = await asyncio.to_thread(SERVICE.convert, bytes(data), fn)
    if not result.ok:
        raise HTTPException(status_code=_status_for(result), detail={"code": result.error_code, "message": result.error})

    headers = {"Content-Disposition": f'attachment; filename="{_pdf_filename(fn)}"'}
    return Response(content=result.pdf_bytes, media_type="application/pdf", headers=headers)


@app.post("/convert/base64")
async def convert_base64(req: Base64ConvertRequest) -> JSONResponse:
    """Convert a base64-encoded .docx and answer with a PDF data URI."""
    if len(req.docx_file_base64) * 3 // 4 > MAX_UPLOAD_MB * 1024 * 1024:
        return JSONResponse(status_code=413, content={"error": f"upload exceeds {MAX_UPLOAD_MB} MB"})
    assert SERVICE is not None
    result = await asyncio.to_thread(SERVICE.convert_base64, req.docx_file_base64, req.original_file_name)
    if not result.ok:
        return JSONResponse(status_code=_status_for(result), content={"error": result.error})
    return JSONResponse(content={"pdf_data_uri": result.data_uri})


def run() -> None:
    """Run a development ASGI server using uvicorn.

    Exposes the app at host:port (default 0.0.0.0:8080). Set PORT env var to override.
    """
    import uvicorn

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8080"))
    # Enable reload in dev unless explicitly disabled
    reload = os.getenv("RELOAD", "true").lower() in {"1", "true", "yes", "on"}

    uvicorn.run("docx_pdf_service.webapi:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    run()
