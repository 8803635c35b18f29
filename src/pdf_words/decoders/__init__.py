"""
Positional text decoders.

Decoders walk a PDF and report `(text, glyph positions)` chunks and line
breaks to a `TextStripperCallbacks` implementation.
"""

from .base import PageInfo, PdfTextDecoder, TextStripperCallbacks
from .pypdfium2_decoder import PdfiumChar, Pypdfium2Decoder, replay_page_chars

__all__ = [
    "PageInfo",
    "PdfTextDecoder",
    "PdfiumChar",
    "Pypdfium2Decoder",
    "TextStripperCallbacks",
    "replay_page_chars",
]
