from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from ..contracts import GlyphPosition
from ..normalizer import flatten_glyph_text

from .base import PageInfo, PdfTextDecoder, TextStripperCallbacks

logger = logging.getLogger(__name__)

_LINE_BREAKS = ("\r", "\n")
_REPLACEMENT_CHAR = 0xFFFD


@dataclass(frozen=True, slots=True)
class PdfiumChar:
    unicode: str
    box: tuple[float, float, float, float]  # left, bottom, right, top (PDF space)
    font_size: float


def _to_glyph(ch: PdfiumChar, *, page_height: float) -> GlyphPosition:
    left, bottom, right, top = ch.box
    return GlyphPosition(
        unicode=ch.unicode,
        x=float(left),
        y=float(page_height - top),
        width=float(right - left),
        height=float(top - bottom),
        font_size=float(ch.font_size),
    )


def replay_page_chars(
    chars: Iterable[PdfiumChar],
    *,
    page: PageInfo,
    callbacks: TextStripperCallbacks,
) -> int:
    """
    Turn a pdfium char stream into chunk / line separator callbacks.

    Each run of glyphs between line breaks becomes one chunk. "\\r\\n" counts
    as a single break. Returns the number of chunks emitted.
    """

    pending: list[GlyphPosition] = []
    chunks = 0
    prev_cr = False

    for ch in chars:
        if ch.unicode in _LINE_BREAKS:
            if ch.unicode == "\n" and prev_cr:
                prev_cr = False
                continue
            if pending:
                callbacks.write_string(flatten_glyph_text(pending), pending)
                pending = []
                chunks += 1
            callbacks.write_line_separator()
            prev_cr = ch.unicode == "\r"
            continue

        prev_cr = False
        pending.append(_to_glyph(ch, page_height=page.height))

    if pending:
        callbacks.write_string(flatten_glyph_text(pending), pending)
        chunks += 1
    return chunks


def _iter_textpage_chars(textpage: Any, pdfium_c: Any) -> Iterator[PdfiumChar]:
    n = textpage.count_chars()
    i = 0
    while i < n:
        code = pdfium_c.FPDFText_GetUnicode(textpage.raw, i)
        step = 1
        # pdfium reports UTF-16 code units; join surrogate pairs into one glyph.
        if 0xD800 <= code <= 0xDBFF and i + 1 < n:
            low = pdfium_c.FPDFText_GetUnicode(textpage.raw, i + 1)
            if 0xDC00 <= low <= 0xDFFF:
                code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                step = 2
        # Unpaired surrogates cannot be encoded as UTF-8.
        if 0xD800 <= code <= 0xDFFF:
            logger.debug("Unpaired surrogate U+%04X at char %d", code, i)
            code = _REPLACEMENT_CHAR
        if code != 0:
            yield PdfiumChar(
                unicode=chr(code),
                box=tuple(textpage.get_charbox(i)),
                font_size=pdfium_c.FPDFText_GetFontSize(textpage.raw, i),
            )
        i += step


class Pypdfium2Decoder(PdfTextDecoder):
    def backend_id(self) -> str:
        return "pypdfium2"

    def backend_version(self) -> str | None:
        try:
            import pypdfium2 as pdfium  # type: ignore

            return getattr(pdfium, "__version__", None)
        except ImportError:
            return None

    def _require_pdfium(self):
        try:
            import pypdfium2 as pdfium  # type: ignore
            import pypdfium2.raw as pdfium_c  # type: ignore

            return pdfium, pdfium_c
        except ImportError as e:
            raise RuntimeError(
                "Missing dependency: pypdfium2 is required for positional text extraction."
            ) from e

    def get_page_count(self, *, pdf_file: Path) -> int:
        pdfium, _ = self._require_pdfium()
        doc = pdfium.PdfDocument(str(pdf_file))
        try:
            return len(doc)
        finally:
            doc.close()

    def decode(
        self,
        *,
        pdf_file: Path,
        callbacks: TextStripperCallbacks,
        pages: list[int],
    ) -> dict[str, Any]:
        pdfium, pdfium_c = self._require_pdfium()
        doc = pdfium.PdfDocument(str(pdf_file))
        try:
            page_count = len(doc)
            meta: dict[str, Any] = {"title": doc.get_metadata_dict().get("Title") or None, "page_count": page_count}

            callbacks.start_document(meta)
            total_chunks = 0
            for page_num in pages:
                if page_num < 1 or page_num > page_count:
                    raise ValueError(f"Page out of range: {page_num} (1..{page_count})")

                page = doc[page_num - 1]
                textpage = page.get_textpage()
                try:
                    width, height = page.get_size()
                    info = PageInfo(page_num=page_num, width=float(width), height=float(height))
                    callbacks.start_page(info)
                    chunks = replay_page_chars(
                        _iter_textpage_chars(textpage, pdfium_c), page=info, callbacks=callbacks
                    )
                    logger.debug("Page %d: %d chunks", page_num, chunks)
                    total_chunks += chunks
                finally:
                    textpage.close()
                    page.close()
            callbacks.end_document(meta)
        finally:
            doc.close()

        return {
            "backend": self.backend_id(),
            "backend_version": self.backend_version(),
            "chunk_count": total_chunks,
        }
