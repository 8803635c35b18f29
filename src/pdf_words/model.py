"""
Page / line / word model.

Words arrive from the decoder one per chunk, with chunk-level glyph positions.
`Page.optimize` re-segments them at whitespace so that every word ends up with
exactly one glyph position per character.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .contracts import GlyphPosition
from .normalizer import resolve_unicode


class EngineStateError(RuntimeError):
    """Decoder callbacks arrived out of order (e.g. text before any page)."""


class AlignmentError(ValueError):
    """
    Chunk text and glyph unicode disagree on the number of characters.

    This is a decoder contract violation; `page_num` is filled in by the page
    pass once the failing chunk is known to belong to a page.
    """

    def __init__(
        self,
        *,
        text: str,
        glyph_count: int,
        char_index: int,
        page_num: int | None = None,
    ) -> None:
        self.text = text
        self.glyph_count = glyph_count
        self.char_index = char_index
        self.page_num = page_num
        where = f"page {page_num}" if page_num is not None else "unknown page"
        super().__init__(
            f"Glyph/character mismatch on {where}: chunk {text!r} has {len(text)} chars, "
            f"{glyph_count} glyphs resolved to {char_index} chars"
        )

    def on_page(self, page_num: int) -> AlignmentError:
        return AlignmentError(
            text=self.text,
            glyph_count=self.glyph_count,
            char_index=self.char_index,
            page_num=page_num,
        )

    def detail(self) -> dict[str, Any]:
        return {
            "page_num": self.page_num,
            "chunk_text": self.text,
            "glyph_count": self.glyph_count,
            "char_index": self.char_index,
        }


@dataclass(slots=True)
class Word:
    text: str
    positions: list[GlyphPosition]
    # Glyph of the whitespace that ended this word during segmentation.
    separator: GlyphPosition | None = None

    def __post_init__(self) -> None:
        self.positions = list(self.positions)

    def __repr__(self) -> str:
        if not self.positions:
            return f"Word(text={self.text!r})"
        first = self.positions[0]
        return f"Word(text={self.text!r}, x={first.x}, y={first.y}, font_size={first.font_size})"

    def optimize(self, line: Line) -> None:
        """
        Split this chunk-level word at whitespace into `line`.

        Glyphs are walked in order; each one covers as many characters of
        `text` as its resolved unicode has code points. The characters come
        from `text`, the resolved unicode only supplies the count.
        """

        text = self.text
        chars: list[str] = []
        staged: list[GlyphPosition] = []
        k = 0

        for glyph in self.positions:
            for _ in range(len(resolve_unicode(glyph.unicode))):
                if k >= len(text):
                    raise AlignmentError(text=text, glyph_count=len(self.positions), char_index=k + 1)
                ch = text[k]
                if ch.isspace():
                    line.new_word(Word("".join(chars), staged, separator=glyph))
                    chars = []
                    staged = []
                else:
                    chars.append(ch)
                    staged.append(glyph)
                k += 1

        if k != len(text):
            raise AlignmentError(text=text, glyph_count=len(self.positions), char_index=k)

        # Usually the last word of the line.
        if chars:
            line.new_word(Word("".join(chars), staged))

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "positions": [p.to_dict() for p in self.positions],
            "separator": self.separator.to_dict() if self.separator is not None else None,
        }


@dataclass(slots=True)
class Line:
    words: list[Word] = field(default_factory=list)

    def new_word(self, word: Word) -> None:
        self.words.append(word)

    def optimize(self) -> None:
        pending = list(self.words)
        self.words.clear()
        for word in pending:
            word.optimize(self)

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words if w.text)

    def to_dict(self, *, drop_empty_words: bool = False) -> list[dict[str, Any]]:
        return [w.to_dict() for w in self.words if w.text or not drop_empty_words]


@dataclass(slots=True)
class Page:
    page_num: int  # 1-indexed
    width: float = 0.0
    height: float = 0.0
    lines: list[Line] = field(default_factory=list)
    # Flat view over all lines; filled by optimize().
    words: list[Word] = field(default_factory=list)

    def new_line(self) -> Line:
        line = Line()
        self.lines.append(line)
        return line

    def new_text(self, text: str, positions: list[GlyphPosition]) -> None:
        if not self.lines:
            raise EngineStateError(f"Text received on page {self.page_num} before any line was started")
        self.lines[-1].new_word(Word(text, positions))

    def optimize(self) -> None:
        try:
            for line in self.lines:
                line.optimize()
        except AlignmentError as e:
            raise e.on_page(self.page_num) from e
        self.words = [w for line in self.lines for w in line.words]

    def to_dict(self, *, drop_empty_words: bool = False) -> dict[str, Any]:
        return {
            "page_num": self.page_num,
            "width": self.width,
            "height": self.height,
            "lines": [line.to_dict(drop_empty_words=drop_empty_words) for line in self.lines],
        }
