from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .contracts import ExtractWordsResult
from .model import Page


def serialize_words_result(result: ExtractWordsResult) -> str:
    payload: dict[str, Any] = result.to_dict()
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2) + "\n"


def write_words_json(*, result: ExtractWordsResult, out_json: Path) -> None:
    out_json.parent.mkdir(parents=True, exist_ok=True)
    out_json.write_text(serialize_words_result(result), encoding="utf-8")


def format_pages_text(pages: list[Page]) -> str:
    """One text line per Line, non-empty words joined by single spaces."""
    out: list[str] = []
    for page in pages:
        out.append(f"=== page {page.page_num} ===")
        out.extend(line.text for line in page.lines)
    return "\n".join(out) + "\n"
