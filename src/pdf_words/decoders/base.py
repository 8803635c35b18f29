from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..contracts import GlyphPosition


@dataclass(frozen=True, slots=True)
class PageInfo:
    page_num: int  # 1-indexed
    width: float  # PDF points
    height: float


class TextStripperCallbacks(ABC):
    """
    Hooks a decoder invokes while walking a document, in this order:

    start_document, then per page start_page followed by any interleaving of
    write_string / write_line_separator, then end_document.
    """

    @abstractmethod
    def start_document(self, meta: dict[str, Any]) -> None:
        raise NotImplementedError

    @abstractmethod
    def start_page(self, page: PageInfo) -> None:
        raise NotImplementedError

    @abstractmethod
    def write_string(self, text: str, positions: list[GlyphPosition]) -> None:
        raise NotImplementedError

    @abstractmethod
    def write_line_separator(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def end_document(self, meta: dict[str, Any]) -> None:
        raise NotImplementedError


class PdfTextDecoder(ABC):
    """
    Positional text decoder abstraction.

    Decoders must:
    - Emit pages in the requested order
    - Emit chunk text equal to `flatten_glyph_text(positions)`
    - Never mutate a GlyphPosition after handing it out
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    def backend_version(self) -> str | None:
        return None

    @abstractmethod
    def get_page_count(self, *, pdf_file: Path) -> int:
        raise NotImplementedError

    @abstractmethod
    def decode(
        self,
        *,
        pdf_file: Path,
        callbacks: TextStripperCallbacks,
        pages: list[int],  # 1-indexed, explicit ordering
    ) -> dict[str, Any]:
        """
        Drive `callbacks` over the selected pages.

        Return the backend params fragment (backend info/version/etc) to be
        merged into the result's `extraction` block.
        """

        raise NotImplementedError
