"""
Positional word extraction (PDF -> pages of lines of position-aligned words).

The decoder reports text chunks with their glyph positions; the engine
re-segments each chunk at whitespace so every word carries exactly one glyph
position per character.

This package is intentionally limited to word segmentation:
- It performs NO layout reconstruction, OCR, rendering or glyph shaping.
- Glyph positions are passed through unchanged.
"""

from .contracts import (
    DecoderName,
    ExtractWordsConfig,
    ExtractWordsResult,
    GlyphPosition,
    WordsError,
)
from .engine import PdfWordEngine
from .model import AlignmentError, EngineStateError, Line, Page, Word
from .module import run_extract_words_relpath
from .normalizer import normalize

__all__ = [
    "AlignmentError",
    "DecoderName",
    "EngineStateError",
    "ExtractWordsConfig",
    "ExtractWordsResult",
    "GlyphPosition",
    "Line",
    "Page",
    "PdfWordEngine",
    "Word",
    "WordsError",
    "normalize",
    "run_extract_words_relpath",
]
