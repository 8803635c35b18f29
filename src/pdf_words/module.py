from __future__ import annotations

import hashlib
import json
import logging
import re
from typing import Any

from .contracts import (
    DecoderName,
    ExtractWordsConfig,
    ExtractWordsResult,
    WordsError,
)
from .data_access import DataAccessError, resolve_input_pdf, sha256_file
from .decoders import PdfTextDecoder, Pypdfium2Decoder
from .engine import PdfWordEngine
from .model import AlignmentError, Page

logger = logging.getLogger(__name__)


def _safe_pdf_stem(pdf_relpath: str) -> str:
    s = pdf_relpath.replace("\\", "/").split("/")[-1]
    if s.lower().endswith(".pdf"):
        s = s[: -len(".pdf")]
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", s)
    s = re.sub(r"_+", "_", s).strip("_")
    return s or "pdf"


def _canonical_page_selection(selection: str | None) -> str:
    if selection is None:
        return "all"
    s = "".join(selection.split())
    return s if s != "" else "all"


def _compute_doc_id(*, source_pdf_relpath: str, backend_id: str, page_selection: str | None) -> str:
    payload = {
        "source_pdf_relpath": source_pdf_relpath.replace("\\", "/"),
        "backend": backend_id,
        "page_selection": _canonical_page_selection(page_selection),
    }
    s = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    digest = hashlib.sha256(s.encode("utf-8")).hexdigest()
    return f"{_safe_pdf_stem(source_pdf_relpath)}_{digest[:12]}"


def _parse_page_selection(selection: str | None, *, page_count: int) -> list[int]:
    """
    Parse "1,3-5" into a sorted list of unique 1-indexed page numbers.
    None or blank => all pages.
    """

    if selection is None or selection.strip() == "":
        return list(range(1, page_count + 1))

    pages: set[int] = set()
    for part in selection.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            a_str, b_str = part.split("-", 1)
            a, b = int(a_str), int(b_str)
            if b < a:
                raise ValueError(f"invalid range: {part!r}")
            pages.update(range(a, b + 1))
        else:
            pages.add(int(part))

    ordered = sorted(pages)
    if ordered and (ordered[0] < 1 or ordered[-1] > page_count):
        raise ValueError(f"page selection out of bounds (1..{page_count})")
    return ordered


def _get_decoder(engine: DecoderName) -> PdfTextDecoder:
    if engine == DecoderName.PYPDFIUM2:
        return Pypdfium2Decoder()
    raise ValueError(f"Unsupported decoder: {engine}")


def validate_words_result(pages: list[Page]) -> list[WordsError]:
    """
    Re-check the finalized page model:
    - pages keep decoder order (ascending page_num for a sorted selection)
    - one glyph position per character in every word
    - no whitespace inside any word
    """

    errs: list[WordsError] = []
    if [p.page_num for p in pages] != sorted(p.page_num for p in pages):
        errs.append(
            WordsError(
                code="WORDS_NONDETERMINISTIC_ORDER",
                message="Pages are not ordered by ascending page_num",
            )
        )

    for page in pages:
        for line_idx, line in enumerate(page.lines):
            for word_idx, word in enumerate(line.words):
                where = {"page_num": page.page_num, "line": line_idx, "word": word_idx, "text": word.text}
                if len(word.positions) != len(word.text):
                    errs.append(
                        WordsError(
                            code="WORDS_POSITION_MISALIGNED",
                            message="Word has a different number of positions than characters",
                            detail={**where, "positions": len(word.positions)},
                        )
                    )
                if any(ch.isspace() for ch in word.text):
                    errs.append(
                        WordsError(
                            code="WORDS_WHITESPACE_IN_WORD",
                            message="Finalized word contains whitespace",
                            detail=where,
                        )
                    )
    return errs


def run_extract_words_relpath(*, config: ExtractWordsConfig, pdf_relpath: str) -> ExtractWordsResult:
    """
    Programmatic entrypoint.

    Input: PDF relpath under `config.data_root`
    Output: JSON-ready result with pages of lines of position-aligned words
    """

    meta: dict[str, Any] = {}
    decoder = _get_decoder(config.engine)
    doc_id = _compute_doc_id(
        source_pdf_relpath=pdf_relpath,
        backend_id=decoder.backend_id(),
        page_selection=config.page_selection,
    )
    extraction: dict[str, Any] = {
        "backend": decoder.backend_id(),
        "page_selection": _canonical_page_selection(config.page_selection),
    }

    def failed(code: str, message: str, detail: dict[str, Any] | None = None) -> ExtractWordsResult:
        logger.warning("%s: %s (%s)", code, message, pdf_relpath)
        return ExtractWordsResult(
            doc_id=doc_id,
            ok=False,
            engine=config.engine,
            source_pdf_relpath=pdf_relpath,
            extraction=extraction,
            pages=[],
            errors=[WordsError(code=code, message=message, detail=detail)],
            meta=meta,
            drop_empty_words=config.drop_empty_words,
        )

    try:
        pdf_file = resolve_input_pdf(data_root=config.data_root, relpath=pdf_relpath)
    except DataAccessError as e:
        return failed(e.code, str(e), {"data_root": str(config.data_root), "relpath": pdf_relpath})

    try:
        page_count = decoder.get_page_count(pdf_file=pdf_file)
    except Exception as e:
        return failed("WORDS_BACKEND_PAGECOUNT_FAILED", "Failed to read PDF page count", {"error": repr(e)})

    try:
        pages_to_decode = _parse_page_selection(config.page_selection, page_count=page_count)
    except ValueError as e:
        return failed(
            "WORDS_BAD_PAGE_SELECTION",
            "Invalid page_selection",
            {"page_selection": config.page_selection, "error": str(e)},
        )

    engine = PdfWordEngine()
    try:
        engine.process(decoder=decoder, pdf_file=pdf_file, pages=pages_to_decode)
    except AlignmentError as e:
        return failed("WORDS_ALIGNMENT_MISMATCH", "Chunk text and glyphs do not align", e.detail())
    except Exception as e:
        return failed("WORDS_BACKEND_DECODE_FAILED", "PDF text decoding failed", {"error": repr(e)})

    pages = engine.result()

    if config.compute_source_sha256:
        try:
            extraction["source_sha256"] = sha256_file(pdf_file)
        except OSError as e:
            meta.setdefault("audit_warnings", []).append({"code": "WORDS_SOURCE_HASH_FAILED", "error": repr(e)})

    extraction.update(engine.decode_params)
    extraction.setdefault("backend_version", decoder.backend_version())
    extraction["page_count"] = page_count
    meta["word_count"] = sum(len(p.words) for p in pages)

    errors = validate_words_result(pages)
    return ExtractWordsResult(
        doc_id=doc_id,
        ok=not errors,
        engine=config.engine,
        source_pdf_relpath=pdf_relpath,
        extraction=extraction,
        pages=pages,
        errors=errors,
        meta=meta,
        drop_empty_words=config.drop_empty_words,
    )
