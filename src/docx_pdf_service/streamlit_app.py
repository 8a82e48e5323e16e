import io
import os
from pathlib import Path

import requests
import streamlit as st

API_BASE = os.getenv("DOCX_PDF_API_BASE", os.getenv("API_BASE", "http://localhost:8080")).rstrip("/")
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _reset_state():
    for key in ["pdf_bytes", "pdf_name", "error"]:
        if key in st.session_state:
            del st.session_state[key]
    # Bump the uploader key to clear any previously uploaded file widget state
    if "upload_key" in st.session_state:
        st.session_state["upload_key"] += 1
    else:
        st.session_state["upload_key"] = 1


def _error_message(resp: requests.Response) -> str:
    try:
        detail = resp.json().get("detail")
    except ValueError:
        return f"Conversion failed: {resp.status_code} {resp.text}"
    if isinstance(detail, dict) and detail.get("message"):
        return str(detail["message"])
    return f"Conversion failed: {resp.status_code} {detail}"


def _convert(uploaded_file: io.BytesIO) -> bytes | None:
    try:
        files = {"file": (uploaded_file.name, uploaded_file.getvalue(), uploaded_file.type or DOCX_MIME)}
        resp = requests.post(f"{API_BASE}/convert", files=files, timeout=300)
    except requests.RequestException as e:
        st.session_state["error"] = f"Failed to connect to API: {e}"
        return None
    if resp.status_code != 200:
        st.session_state["error"] = _error_message(resp)
        return None
    return resp.content


def _loaded_fonts() -> list[str]:
    try:
        resp = requests.get(f"{API_BASE}/fonts", timeout=10)
        resp.raise_for_status()
        return list(resp.json().get("fonts", []))
    except (requests.RequestException, ValueError):
        return []


def main() -> None:
    st.set_page_config(page_title="Word to PDF", page_icon="📄", layout="centered")
    st.title("📄 Word to PDF")
    fonts = _loaded_fonts()
    st.caption(f"API base: {API_BASE} · fonts: {', '.join(fonts) if fonts else 'built-in only'}")

    if st.button("Restart", type="secondary"):
        _reset_state()
        st.rerun()

    # Use a dynamic key so that restarting bumps the key and clears the previous upload
    if "upload_key" not in st.session_state:
        st.session_state["upload_key"] = 0
    uploaded = st.file_uploader(
        "Upload a Word document (.docx)",
        type=["docx"],
        key=f"uploader-{st.session_state['upload_key']}",
    )

    if uploaded and "pdf_bytes" not in st.session_state and st.button("Convert to PDF", type="primary"):
        st.session_state.pop("error", None)
        with st.spinner(f"Converting {uploaded.name}..."):
            pdf = _convert(uploaded)
        if pdf is not None:
            st.session_state["pdf_bytes"] = pdf
            st.session_state["pdf_name"] = f"{Path(uploaded.name).stem or 'document'}.pdf"
            st.toast("Conversion complete", icon="✅")

    if "pdf_bytes" in st.session_state:
        st.success("Conversion complete!")
        st.download_button(
            label="Download PDF",
            data=st.session_state["pdf_bytes"],
            file_name=st.session_state["pdf_name"],
            mime="application/pdf",
        )

    if err := st.session_state.get("error"):
        st.error(err)


if __name__ == "__main__":
    main()
