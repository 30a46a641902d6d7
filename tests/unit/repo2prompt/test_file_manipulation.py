import io
from pathlib import Path

import pytest

from repo2prompt.config import PathConvention
from repo2prompt.file_manipulation import (
    TruncationState,
    copy_with_limit,
    is_binary_file,
    is_regular_file,
    relpath,
    stream_file_with_limit,
)


@pytest.mark.unit
def test_relpath_uses_convention_separator(tmp_path: Path) -> None:
    path = tmp_path / "src" / "pkg" / "mod.py"

    assert relpath(path, tmp_path) == "src/pkg/mod.py"
    assert relpath(path, tmp_path, PathConvention.WINDOWS) == "src\\pkg\\mod.py"


@pytest.mark.unit
def test_relpath_outside_root_returns_original(tmp_path: Path) -> None:
    outside = Path("/somewhere/else.txt")

    assert relpath(outside, tmp_path) == str(outside)


@pytest.mark.unit
def test_is_regular_file(tmp_path: Path) -> None:
    f = tmp_path / "a.txt"
    f.write_text("x", encoding="utf-8")

    assert is_regular_file(f)
    assert not is_regular_file(tmp_path)
    assert not is_regular_file(tmp_path / "missing")


@pytest.mark.unit
def test_is_binary_file_bin_extension_wins(tmp_path: Path) -> None:
    upper = tmp_path / "another.BIN"
    upper.write_text("some text", encoding="utf-8")

    assert is_binary_file(upper)
    # never read: a missing .bin file is still binary
    assert is_binary_file(tmp_path / "missing.bin")


@pytest.mark.unit
def test_is_binary_file_detects_null_byte(tmp_path: Path) -> None:
    data = tmp_path / "image.dat"
    data.write_bytes(bytes([0, 159, 146, 150]))

    assert is_binary_file(data)


@pytest.mark.unit
def test_is_binary_file_plain_text(tmp_path: Path) -> None:
    text = tmp_path / "file.txt"
    text.write_text("This is plain text without a null byte.", encoding="utf-8")

    assert not is_binary_file(text)


@pytest.mark.unit
def test_is_binary_file_only_scans_first_512_bytes(tmp_path: Path) -> None:
    late_null = tmp_path / "late.dat"
    late_null.write_bytes(b"a" * 512 + b"\x00")
    early_null = tmp_path / "early.dat"
    early_null.write_bytes(b"a" * 511 + b"\x00")

    assert not is_binary_file(late_null)
    assert is_binary_file(early_null)


@pytest.mark.unit
def test_is_binary_file_unreadable_is_text(tmp_path: Path) -> None:
    assert not is_binary_file(tmp_path / "nonexistent.txt")
    assert not is_binary_file(tmp_path)


@pytest.mark.unit
def test_truncation_state_is_monotonic() -> None:
    state = TruncationState(max_size=5)

    assert state.accept(b"abc") == b"abc"
    assert state.accept(b"defg") == b"de"
    assert state.truncated
    assert state.bytes_written == 5
    assert state.accept(b"h") == b""


@pytest.mark.unit
def test_copy_with_limit_truncates_single_chunk() -> None:
    source = io.BytesIO(b"A" * 500 + b"B" * 500)
    sink = io.BytesIO()

    truncated = copy_with_limit(source, sink, 800)

    assert truncated
    assert sink.getvalue() == b"A" * 500 + b"B" * 300 + b"\n[TRUNCATED]\n"


@pytest.mark.unit
def test_copy_with_limit_cuts_inside_later_chunk() -> None:
    source = io.BytesIO(b"A" * 500 + b"B" * 500)
    sink = io.BytesIO()

    truncated = copy_with_limit(source, sink, 800, chunk_size=300)

    assert truncated
    assert sink.getvalue() == b"A" * 500 + b"B" * 300 + b"\n[TRUNCATED]\n"
    # the chunk after the cut is never requested
    assert source.tell() == 900


@pytest.mark.unit
def test_copy_with_limit_exact_size_is_not_truncated() -> None:
    sink = io.BytesIO()

    truncated = copy_with_limit(io.BytesIO(b"x" * 100), sink, 100, chunk_size=50)

    assert not truncated
    assert sink.getvalue() == b"x" * 100


@pytest.mark.unit
def test_copy_with_limit_zero_ceiling() -> None:
    sink = io.BytesIO()

    assert copy_with_limit(io.BytesIO(b"abc"), sink, 0)
    assert sink.getvalue() == b"\n[TRUNCATED]\n"

    empty_sink = io.BytesIO()
    assert not copy_with_limit(io.BytesIO(b""), empty_sink, 0)
    assert empty_sink.getvalue() == b""


@pytest.mark.unit
def test_copy_with_limit_splits_multibyte_characters() -> None:
    sink = io.BytesIO()

    copy_with_limit(io.BytesIO("é".encode() * 3), sink, 3)

    assert sink.getvalue() == "é".encode() + b"\xc3" + b"\n[TRUNCATED]\n"


@pytest.mark.unit
def test_stream_file_with_limit_full_content(tmp_path: Path) -> None:
    small = tmp_path / "small.txt"
    small.write_text("X" * 100, encoding="utf-8")
    sink = io.BytesIO()

    truncated = stream_file_with_limit(small, sink, 200)

    assert not truncated
    assert sink.getvalue() == b"X" * 100


@pytest.mark.unit
def test_stream_file_with_limit_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        stream_file_with_limit(tmp_path / "missing.txt", io.BytesIO(), 10)
