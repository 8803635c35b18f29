from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .model import Page


class DecoderName(str, Enum):
    """
    Text decoding backend identifiers.
    """

    PYPDFIUM2 = "pypdfium2"


@dataclass(frozen=True, slots=True)
class GlyphPosition:
    """
    One decoded glyph: what it resolves to plus where it sits on the page.

    Coordinates are PDF points with a top-left origin. Instances are shared
    between words after segmentation and must never be mutated.
    """

    unicode: str
    x: float
    y: float
    width: float
    height: float
    font_size: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class WordsError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class ExtractWordsResult:
    # Deterministic identifier, stable for identical:
    # (source_pdf_relpath + backend identifier + page selection)
    doc_id: str
    ok: bool
    engine: DecoderName
    source_pdf_relpath: str
    extraction: dict[str, Any]
    pages: list[Page]
    errors: list[WordsError]
    meta: dict[str, Any]
    drop_empty_words: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "doc_id": self.doc_id,
            "ok": self.ok,
            "engine": self.engine.value,
            "source_pdf_relpath": self.source_pdf_relpath,
            "extraction": self.extraction,
            "pages": [p.to_dict(drop_empty_words=self.drop_empty_words) for p in self.pages],
            "errors": [asdict(e) for e in self.errors],
            "meta": self.meta,
        }


@dataclass(frozen=True, slots=True)
class ExtractWordsConfig:
    """
    Word extraction configuration.

    - `data_root` must be passed explicitly; nothing is read from the environment
    - `drop_empty_words` only filters serialized output, the page model keeps them
    """

    data_root: Path
    engine: DecoderName = DecoderName.PYPDFIUM2
    page_selection: str | None = None  # e.g. "1,3-5"; None => all pages
    drop_empty_words: bool = False
    compute_source_sha256: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.data_root, Path):
            raise TypeError("data_root must be pathlib.Path")
        if not isinstance(self.engine, DecoderName):
            raise ValueError(f"Unsupported decoder: {self.engine!r}")
