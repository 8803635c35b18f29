from __future__ import annotations

import hashlib
from pathlib import Path


class DataAccessError(Exception):
    def __init__(self, message: str, *, code: str = "WORDS_DATA_ACCESS_ERROR") -> None:
        super().__init__(message)
        self.code = code


def resolve_input_pdf(*, data_root: Path, relpath: str) -> Path:
    """
    Resolve a PDF relpath under an explicit data_root and check it exists.

    Raises DataAccessError with:
    - WORDS_INPUT_NOT_PDF for anything without a .pdf extension
    - WORDS_DATA_ACCESS_ERROR for absolute paths or paths escaping data_root
    - WORDS_INPUT_NOT_FOUND when the file is missing
    """

    if not relpath.lower().endswith(".pdf"):
        raise DataAccessError(f"Only PDFs are accepted (by .pdf extension): {relpath!r}", code="WORDS_INPUT_NOT_PDF")

    if Path(relpath).is_absolute() or relpath.startswith(("/", "\\")):
        raise DataAccessError(f"Expected a relative path under data_root, got: {relpath!r}")

    root = data_root.expanduser().resolve()
    candidate = (root / relpath).resolve()
    if not candidate.is_relative_to(root):
        raise DataAccessError(f"Path traversal or external reference detected: relpath={relpath!r}")

    if not candidate.is_file():
        raise DataAccessError(f"Input PDF not found: {relpath!r}", code="WORDS_INPUT_NOT_FOUND")

    return candidate


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for block in iter(lambda: f.read(1 << 20), b""):
            h.update(block)
    return h.hexdigest()
