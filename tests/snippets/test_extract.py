from __future__ import annotations

from pathlib import Path

import pytest

from fencecheck.core.errors import FatalScanError
from fencecheck.snippets.extract import classify_info, extract_blocks, read_document
from fencecheck.snippets.text import line_offset

DOC = """# Title

Some prose.

```fe
fn main() {}
```

```fe ignore
fn sketch() -> ...
```

```bash
$ fe check
```

```rust
fn not_ours() {}
```

```fe title="x"
fn unknown_modifier() {}
```
"""


def _extract(text: str, path: Path = Path("doc.md")):
    return extract_blocks(path, text, language_tag="fe", skip_modifiers={"ignore"})


def test_classify_info_distinguishes_checked_skipped_and_other() -> None:
    assert classify_info("fe", "fe", {"ignore"}) is True
    assert classify_info("fe ignore", "fe", {"ignore"}) is False
    assert classify_info("fe   ignore", "fe", {"ignore"}) is False
    assert classify_info("fe ignore extra", "fe", {"ignore"}) is None
    assert classify_info("fe-lang", "fe", {"ignore"}) is None
    assert classify_info("fe nocheck", "fe", {"ignore"}) is None
    assert classify_info("", "fe", {"ignore"}) is None


def test_extracts_only_candidates_with_start_line_after_fence() -> None:
    blocks = _extract(DOC)
    assert [(b.start_line, b.checked) for b in blocks] == [(6, True), (10, False)]
    assert blocks[0].raw_text == "fn main() {}\n"
    assert blocks[1].raw_text == "fn sketch() -> ...\n"
    assert all(b.language_tag == "fe" for b in blocks)


def test_raw_text_is_a_verbatim_slice_of_the_source() -> None:
    for block in _extract(DOC):
        offset = line_offset(DOC, block.start_line)
        assert DOC[offset : offset + len(block.raw_text)] == block.raw_text


def test_crlf_documents_keep_line_endings() -> None:
    text = "intro\r\n```fe\r\nlet x = 1\r\nlet y = 2\r\n```\r\n"
    (block,) = _extract(text)
    assert block.start_line == 3
    assert block.raw_text == "let x = 1\r\nlet y = 2\r\n"
    offset = line_offset(text, block.start_line)
    assert text[offset : offset + len(block.raw_text)] == block.raw_text


def test_fences_inside_other_fences_are_content() -> None:
    text = "````markdown\n```fe\nfn inner() {}\n```\n````\n\n```fe\nfn outer() {}\n```\n"
    (block,) = _extract(text)
    assert block.start_line == 8
    assert block.raw_text == "fn outer() {}\n"


def test_hidden_markers_pass_through_untouched() -> None:
    text = "```fe\n//<hide>\nuse std\n//</hide>\nfn main() {}\n```\n"
    (block,) = _extract(text)
    assert block.raw_text == "//<hide>\nuse std\n//</hide>\nfn main() {}\n"


def test_unterminated_fence_runs_to_end_of_file() -> None:
    seen: list[int] = []
    text = "prose\n```fe\nfn main() {}\nlet x = 1"
    blocks = extract_blocks(Path("d.md"), text, language_tag="fe", skip_modifiers={"ignore"}, on_unterminated=seen.append)
    assert seen == [2]
    assert blocks[0].raw_text == "fn main() {}\nlet x = 1"
    assert blocks[0].line_count == 2


def test_empty_block_is_extracted_and_flagged_empty() -> None:
    (block,) = _extract("```fe\n```\n")
    assert block.raw_text == ""
    assert block.is_empty
    assert block.line_count == 0


def test_read_document_raises_fatal_scan_error(tmp_path: Path) -> None:
    with pytest.raises(FatalScanError):
        read_document(tmp_path / "missing.md")
    bad = tmp_path / "bad.md"
    bad.write_bytes(b"\xff\xfe not utf-8")
    with pytest.raises(FatalScanError) as exc:
        read_document(bad)
    assert exc.value.kind == "fatal_scan"
