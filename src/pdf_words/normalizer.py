from __future__ import annotations

import unicodedata
from typing import Iterable

from .contracts import GlyphPosition

ALLAH_LIGATURE = "\ufdf2"
ALLAH_DECOMPOSED = "\u0644\u0644\u0647"
_ALEF_FORMS = ("\u0627", "\ufe8d")

# Trimmed off NFKC results; some decompositions carry a padding space (e.g. U+FC5E).
_ASCII_WHITESPACE = " \t\n\r\x0b\x0c"


def _in_presentation_forms(c: str) -> bool:
    cp = ord(c)
    return 0xFB00 <= cp <= 0xFDFF or 0xFE70 <= cp <= 0xFEFF


def normalize(s: str) -> str:
    """
    Apply NFKC only to Alphabetic and Arabic Presentation Form code points.

    Normalizing everything would fold too much (e.g. MICRO SIGN into Greek mu).
    The result holds the transformed segments and the untouched text between
    them; text after the last presentation-form code point is not copied, so
    a string without any such code point normalizes to "".
    """

    out: list[str] = []
    p = 0
    for q, c in enumerate(s):
        if not _in_presentation_forms(c):
            continue
        out.append(s[p:q])
        # Some fonts map U+FDF2 with an extra leading Alef; drop the duplicate.
        if c == ALLAH_LIGATURE and q > 0 and s[q - 1] in _ALEF_FORMS:
            out.append(ALLAH_DECOMPOSED)
        else:
            out.append(unicodedata.normalize("NFKC", c).strip(_ASCII_WHITESPACE))
        p = q + 1
    return "".join(out)


def resolve_unicode(s: str) -> str:
    """What a glyph's unicode contributes to chunk text."""
    return normalize(s) or s


def flatten_glyph_text(glyphs: Iterable[GlyphPosition]) -> str:
    return "".join(resolve_unicode(g.unicode) for g in glyphs)
