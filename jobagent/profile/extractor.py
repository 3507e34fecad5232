"""Resume text acquisition with upload limits (PDF via pymupdf, optional dependency)."""

from pathlib import Path

MAX_FILE_BYTES = 1_048_576  # 1 MB
MAX_RESUME_CHARS = 300_000


def _read_pdf_text(path: Path) -> str:
    try:
        import pymupdf
    except ImportError:
        msg = "Reading PDF resumes needs pymupdf: pip install 'smart-job-agent[profile]'"
        raise ImportError(msg) from None

    with pymupdf.open(path) as doc:
        return "\n".join(page.get_text() for page in doc)


def load_resume_text(path: str | Path) -> str:
    """Read a resume file, enforcing the 1 MB file and 300,000 character limits.

    PDFs go through pymupdf; anything else is read as UTF-8 text.

    Raises:
        FileNotFoundError: If the file does not exist.
        ImportError: If the file is a PDF and pymupdf is not installed.
        ValueError: If a limit is exceeded or no text could be extracted.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Resume file not found: {path}"
        raise FileNotFoundError(msg)

    if path.stat().st_size > MAX_FILE_BYTES:
        msg = (
            "File size exceeds 1MB. Please upload a smaller file or shorten "
            "the resume to under 300,000 characters."
        )
        raise ValueError(msg)

    if path.suffix.lower() == ".pdf":
        text = _read_pdf_text(path)
    else:
        text = path.read_text(encoding="utf-8", errors="replace")

    if len(text) > MAX_RESUME_CHARS:
        msg = (
            f"Resume text is {len(text)} characters. Please shorten it to under "
            "300,000 characters."
        )
        raise ValueError(msg)
    if not text.strip():
        msg = f"No text could be extracted from {path}"
        raise ValueError(msg)
    return text
