from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .contracts import GlyphPosition
from .decoders import PageInfo, PdfTextDecoder, TextStripperCallbacks
from .model import EngineStateError, Page

logger = logging.getLogger(__name__)


class PdfWordEngine(TextStripperCallbacks):
    """
    Collects decoder callbacks into pages of lines of words.

    Usage:
        engine = PdfWordEngine()
        pages = engine.process(decoder=Pypdfium2Decoder(), pdf_file=path, pages=[1, 2])

    Pages are finalized (re-segmented into whitespace-free words) on
    end_document. The current page is always the last one started.
    """

    def __init__(self, *, log: logging.Logger | None = None) -> None:
        self._log = log or logger
        self._pages: list[Page] = []
        # Backend params reported by the last decoder run.
        self.decode_params: dict[str, Any] = {}

    def process(self, *, decoder: PdfTextDecoder, pdf_file: Path, pages: list[int]) -> list[Page]:
        self.reset()
        self.decode_params = decoder.decode(pdf_file=pdf_file, callbacks=self, pages=pages)
        return self.result()

    def result(self) -> list[Page]:
        return self._pages

    def reset(self) -> None:
        self._log.info("Resetting PDF word engine")
        # Rebind so results handed out earlier stay intact.
        self._pages = []
        self.decode_params = {}

    def _current_page(self) -> Page:
        if not self._pages:
            raise EngineStateError("Decoder emitted text before start_page")
        return self._pages[-1]

    def start_document(self, meta: dict[str, Any]) -> None:
        self._log.info("PDF word engine started processing document %s", meta.get("title"))

    def start_page(self, page: PageInfo) -> None:
        self._pages.append(Page(page_num=page.page_num, width=page.width, height=page.height))
        self._pages[-1].new_line()

    def write_string(self, text: str, positions: list[GlyphPosition]) -> None:
        self._current_page().new_text(text, positions)

    def write_line_separator(self) -> None:
        self._current_page().new_line()

    def end_document(self, meta: dict[str, Any]) -> None:
        self._log.info("Optimizing %d pages...", len(self._pages))
        for page in self._pages:
            page.optimize()
        self._log.info("PDF document processing completed.")
