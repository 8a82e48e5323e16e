"""
DOCX to PDF Conversion Service package.

This module provides a FastAPI application that converts uploaded Word
documents to PDF, picking a bundled font per paragraph so CJK and Latin
text both render. A Streamlit upload page is available in `streamlit_app`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
