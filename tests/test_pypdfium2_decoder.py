from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import patch

from pdf_words import cli
from pdf_words.decoders import (
    PageInfo,
    PdfiumChar,
    Pypdfium2Decoder,
    TextStripperCallbacks,
    replay_page_chars,
)
from pdf_words.engine import PdfWordEngine


class _Recorder(TextStripperCallbacks):
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def start_document(self, meta: dict[str, Any]) -> None:
        self.events.append(("start_document", meta.get("title")))

    def start_page(self, page: PageInfo) -> None:
        self.events.append(("start_page", page.page_num))

    def write_string(self, text, positions) -> None:
        self.events.append(("write_string", text, len(positions)))

    def write_line_separator(self) -> None:
        self.events.append(("line",))

    def end_document(self, meta: dict[str, Any]) -> None:
        self.events.append(("end_document",))


def _chars(text: str) -> list[PdfiumChar]:
    out = []
    for i, c in enumerate(text):
        out.append(
            PdfiumChar(
                unicode=c,
                box=(10.0 * i, 700.0, 10.0 * i + 8.0, 712.0),
                font_size=12.0,
            )
        )
    return out


class _FakeTextPage:
    def __init__(self, codes: list[int]) -> None:
        self.codes = codes
        self.raw = self
        self.closed = False

    def count_chars(self) -> int:
        return len(self.codes)

    def get_charbox(self, index: int, loose: bool = False):
        return (5.0 * index, 100.0, 5.0 * index + 4.0, 110.0)

    def close(self) -> None:
        self.closed = True


class _FakePage:
    def __init__(self, codes: list[int]) -> None:
        self.textpage = _FakeTextPage(codes)
        self.closed = False

    def get_size(self):
        return (200.0, 300.0)

    def get_textpage(self) -> _FakeTextPage:
        return self.textpage

    def close(self) -> None:
        self.closed = True


class _FakeDocument:
    def __init__(self, pages: list[_FakePage]) -> None:
        self.pages = pages
        self.closed = False

    def __len__(self) -> int:
        return len(self.pages)

    def __getitem__(self, index: int) -> _FakePage:
        return self.pages[index]

    def get_metadata_dict(self) -> dict[str, str]:
        return {"Title": "Fake title"}

    def close(self) -> None:
        self.closed = True


def _fake_raw() -> SimpleNamespace:
    return SimpleNamespace(
        FPDFText_GetUnicode=lambda tp, i: tp.codes[i],
        FPDFText_GetFontSize=lambda tp, i: 11.0,
    )


class TestReplayPageChars(unittest.TestCase):
    def test_runs_between_breaks_become_chunks(self) -> None:
        rec = _Recorder()
        chars = _chars("ab cd\r\nef\ng")
        n = replay_page_chars(chars, page=PageInfo(page_num=1, width=600.0, height=800.0), callbacks=rec)

        self.assertEqual(n, 3)
        self.assertEqual(
            rec.events,
            [
                ("write_string", "ab cd", 5),
                ("line",),
                ("write_string", "ef", 2),
                ("line",),
                ("write_string", "g", 1),
            ],
        )

    def test_break_without_text_still_separates_lines(self) -> None:
        rec = _Recorder()
        replay_page_chars(_chars("\r\n\r\nx"), page=PageInfo(1, 600.0, 800.0), callbacks=rec)
        self.assertEqual(rec.events, [("line",), ("line",), ("write_string", "x", 1)])

    def test_chunk_text_is_flattened_glyph_unicode(self) -> None:
        rec = _Recorder()
        replay_page_chars(_chars("\ufb01x"), page=PageInfo(1, 600.0, 800.0), callbacks=rec)
        self.assertEqual(rec.events, [("write_string", "fix", 2)])

    def test_glyph_geometry_uses_top_left_origin(self) -> None:
        captured = []

        class _Capture(_Recorder):
            def write_string(self, text, positions) -> None:
                captured.extend(positions)

        replay_page_chars(_chars("ab"), page=PageInfo(1, 600.0, 800.0), callbacks=_Capture())
        g = captured[1]
        self.assertEqual((g.x, g.y, g.width, g.height, g.font_size), (10.0, 88.0, 8.0, 12.0, 12.0))
        self.assertEqual(g.unicode, "b")


class TestPypdfium2Decoder(unittest.TestCase):
    def _run(self, doc: _FakeDocument, pages: list[int]):
        fake_pdfium = SimpleNamespace(PdfDocument=lambda path: doc, __version__="4.0-fake")
        decoder = Pypdfium2Decoder()
        with patch.object(Pypdfium2Decoder, "_require_pdfium", return_value=(fake_pdfium, _fake_raw())):
            engine = PdfWordEngine()
            result = engine.process(decoder=decoder, pdf_file=Path("x.pdf"), pages=pages)
        return engine, result

    def test_decode_drives_engine_and_closes_handles(self) -> None:
        # "Hi there\r\n" then U+1D400 as a surrogate pair, a NUL, and "!"
        codes = [ord(c) for c in "Hi there\r\n"] + [0xD835, 0xDC00, 0, ord("!")]
        doc = _FakeDocument([_FakePage(codes)])

        engine, pages = self._run(doc, [1])

        self.assertEqual([[w.text for w in line.words] for line in pages[0].lines], [["Hi", "there"], ["\U0001d400!"]])
        self.assertEqual(len(pages[0].lines[1].words[0].positions), 2)
        self.assertEqual((pages[0].width, pages[0].height), (200.0, 300.0))
        self.assertEqual(engine.decode_params["chunk_count"], 2)
        self.assertTrue(doc.closed)
        self.assertTrue(doc.pages[0].closed)
        self.assertTrue(doc.pages[0].textpage.closed)

    def test_unpaired_surrogates_become_replacement_char(self) -> None:
        cases = [
            ([ord("a"), 0xD835, ord(" "), ord("b")], ["a\ufffd", "b"]),
            ([ord("a"), 0xD835], ["a\ufffd"]),
            ([0xDC00, ord("b")], ["\ufffdb"]),
        ]
        for codes, expected in cases:
            with self.subTest(codes=codes):
                _, pages = self._run(_FakeDocument([_FakePage(codes)]), [1])

                words = pages[0].words
                self.assertEqual([w.text for w in words], expected)
                for w in words:
                    self.assertEqual(len(w.positions), len(w.text))
                    json.dumps(w.to_dict(), ensure_ascii=False).encode("utf-8")

    def test_cli_writes_json_for_unpaired_surrogate(self) -> None:
        doc = _FakeDocument([_FakePage([ord("a"), 0xD835, ord(" "), ord("b")])])
        fake_pdfium = SimpleNamespace(PdfDocument=lambda path: doc, __version__="4.0-fake")

        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "input.pdf").write_bytes(b"%PDF-FAKE%")
            out_json = root / "words.json"

            with patch.object(Pypdfium2Decoder, "_require_pdfium", return_value=(fake_pdfium, _fake_raw())):
                rc = cli.main(["--data-root", str(root), "--pdf-relpath", "input.pdf", "--out-json", str(out_json)])

            self.assertEqual(rc, 0)
            d = json.loads(out_json.read_text(encoding="utf-8"))
            self.assertEqual([w["text"] for w in d["pages"][0]["lines"][0]], ["a\ufffd", "b"])

    def test_selected_pages_in_given_order(self) -> None:
        doc = _FakeDocument([_FakePage([ord("a")]), _FakePage([ord("b")]), _FakePage([ord("c")])])
        _, pages = self._run(doc, [1, 3])
        self.assertEqual([p.page_num for p in pages], [1, 3])
        self.assertEqual([p.words[0].text for p in pages], ["a", "c"])

    def test_page_out_of_range_raises_and_closes_document(self) -> None:
        doc = _FakeDocument([_FakePage([ord("a")])])
        with self.assertRaises(ValueError):
            self._run(doc, [2])
        self.assertTrue(doc.closed)

    def test_page_count(self) -> None:
        doc = _FakeDocument([_FakePage([]), _FakePage([])])
        fake_pdfium = SimpleNamespace(PdfDocument=lambda path: doc)
        with patch.object(Pypdfium2Decoder, "_require_pdfium", return_value=(fake_pdfium, _fake_raw())):
            self.assertEqual(Pypdfium2Decoder().get_page_count(pdf_file=Path("x.pdf")), 2)
        self.assertTrue(doc.closed)


if __name__ == "__main__":
    unittest.main()
