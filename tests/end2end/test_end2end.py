import json
import re
from pathlib import Path

import pytest

from repo2prompt import cli
from repo2prompt.config import DEFAULT_PREAMBLE


def _run(repo: Path, output: Path, *extra: str) -> str:
    exit_code = cli.main([str(repo), "-o", str(output), "--no-progress", *extra])
    assert exit_code == 0
    return output.read_bytes().decode("utf-8")


def _body(content: str) -> str:
    assert content.startswith(DEFAULT_PREAMBLE)
    return content[len(DEFAULT_PREAMBLE) :]


def test_end_to_end_single_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "a.txt").write_text("hi", encoding="utf-8")
    output = tmp_path / "out.txt"

    content = _run(repo, output)

    assert _body(content) == "Table of Contents:\n1. a.txt\n\n----[1]\na.txt\nhi\n--END--\n"
    assert f"Repository content written to: {output}" in capsys.readouterr().out


def test_end_to_end_ignore_and_reinclude(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    (repo / "logs").mkdir(parents=True)
    (repo / "main.py").write_text("print(1)", encoding="utf-8")
    (repo / "debug.log").write_text("noise", encoding="utf-8")
    (repo / "keep.log").write_text("signal", encoding="utf-8")
    (repo / "logs" / "x.txt").write_text("x", encoding="utf-8")
    (repo / ".repo2promptignore").write_text("# noise\n*.log\nlogs/\n!keep.log\n", encoding="utf-8")

    body = _body(_run(repo, tmp_path / "out.txt"))

    assert body.startswith("Table of Contents:\n1. main.py\n2. keep.log\n\n")
    assert "debug.log" not in body
    assert "logs/x.txt" not in body
    assert "----[2]\nkeep.log\nsignal\n" in body


def test_end_to_end_skips_infrastructure_directories(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    (repo / ".git" / "HEAD").write_text("ref: refs/heads/main", encoding="utf-8")
    (repo / "web" / "node_modules" / "lib").mkdir(parents=True)
    (repo / "web" / "node_modules" / "lib" / "index.js").write_text("x", encoding="utf-8")
    (repo / "web" / "app.js").write_text("app", encoding="utf-8")

    body = _body(_run(repo, tmp_path / "out.txt"))

    assert body.startswith("Table of Contents:\n1. web/app.js\n\n")
    assert "HEAD" not in body
    assert "node_modules" not in body


def test_end_to_end_truncates_large_file(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "big.txt").write_text("A" * 500 + "B" * 500, encoding="utf-8")

    body = _body(_run(repo, tmp_path / "out.txt", "--max-size", "800"))

    assert body == (
        "Table of Contents:\n1. big.txt\n\n----[1]\nbig.txt\n" + "A" * 500 + "B" * 300 + "\n[TRUNCATED]\n\n--END--\n"
    )


def test_end_to_end_binary_file(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "blob.dat").write_bytes(b"GIF89a\x00\x01\x02")

    body = _body(_run(repo, tmp_path / "out.txt"))

    assert re.fullmatch(
        r"Table of Contents:\n1\. blob\.dat\n\n----\[1\]\nblob\.dat\n"
        r"\[BINARY FILE\] Size: 9 bytes, Modified: \d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\n--END--\n",
        body,
    )


def test_end_to_end_custom_preamble_and_pyproject_config(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    repo = tmp_path
    (repo / "docs").mkdir()
    (repo / "docs" / "intro.md").write_text("Explain this project.", encoding="utf-8")
    (repo / "src.py").write_text("x = 1\n", encoding="utf-8")
    (repo / "pyproject.toml").write_text(
        '[project]\nname = "demo"\n\n[tool.repo2prompt]\n'
        'output = "dump.txt"\npreamble = "docs/intro.md"\nmaxSize = 3\n',
        encoding="utf-8",
    )
    monkeypatch.chdir(repo)

    assert cli.main(["--no-progress"]) == 0

    content = (repo / "dump.txt").read_text(encoding="utf-8")
    assert content.startswith("Explain this project.\nTable of Contents:\n1. pyproject.toml\n2. src.py\n\n")
    assert "docs/intro.md" not in content
    assert "dump.txt" not in content
    assert "----[2]\nsrc.py\nx =\n[TRUNCATED]\n\n--END--\n" in content


def test_end_to_end_explicit_config_file(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "a.txt").write_text("a", encoding="utf-8")
    (repo / "b.md").write_text("b", encoding="utf-8")
    (repo / "custom.ignore").write_text("*.md\n", encoding="utf-8")
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"ignoreFile": "custom.ignore"}), encoding="utf-8")

    body = _body(_run(repo, tmp_path / "out.txt", "--config", str(config)))

    assert body.startswith("Table of Contents:\n1. a.txt\n\n")
    assert "custom.ignore" not in body
