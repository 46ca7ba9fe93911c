from __future__ import annotations

import json
import os
import textwrap
from pathlib import Path

from csv_tokenizer.cli import cli


def _write(tmp_path: Path, filename: str, content: str) -> Path:
    path = tmp_path / filename
    path.write_text(content, encoding="utf-8", newline="")
    return path


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_cli_prints_normalized_csv(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", 'a,"b",c\r\n"x ""y""",z\r\n')

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0, result.output
    assert result.output == 'a,b,c\n"x ""y""",z\n'
    assert target.read_bytes() == b'a,"b",c\r\n"x ""y""",z\r\n'


def test_cli_json_output(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", 'name,note\nAda,"line1\nline2"\n')

    result = cli_runner.invoke(cli, ["--format", "json", str(target)])

    assert result.exit_code == 0, result.output
    records = [json.loads(line) for line in result.output.splitlines()]
    assert records == [["name", "note"], ["Ada", "line1\nline2"]]


def test_cli_null_fields_in_json(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", 'a,,""\n')

    result = cli_runner.invoke(
        cli, ["--format", "json", "--null-fields", "empty_separators", str(target)]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == ["a", None, ""]


def test_cli_separator_option(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.tsv", "a\tb,c\n")

    result = cli_runner.invoke(cli, ["--separator", "\\t", "--format", "json", str(target)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == ["a", "b,c"]


def test_cli_rfc4180_mode(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", '1,"C:\\path\\",x\n')

    result = cli_runner.invoke(cli, ["--rfc4180", "--format", "json", str(target)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == ["1", "C:\\path\\", "x"]


def test_cli_skip_lines(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", "# exported\na,b\n")

    result = cli_runner.invoke(cli, ["--skip-lines", "1", str(target)])

    assert result.exit_code == 0, result.output
    assert result.output == "a,b\n"


def test_cli_uses_pyproject_configuration(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.csv-tokenizer]
        separator = ";"
        """,
    )
    target = _write(tmp_path, "data.csv", "a;b,c\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0, result.output
    assert result.output == "a;b,c\n"


def test_cli_in_place_rewrites_file(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", '"a","b"\r\n"c","d"\r\n')

    result = cli_runner.invoke(cli, ["--in-place", str(target)])

    assert result.exit_code == 0, result.output
    assert result.output == ""
    assert target.read_text(encoding="utf-8") == "a,b\nc,d\n"


def test_cli_in_place_requires_csv_format(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", "a,b\n")

    result = cli_runner.invoke(cli, ["--in-place", "--format", "json", str(target)])

    assert result.exit_code != 0
    assert "--in-place" in result.output


def test_cli_reports_unterminated_quote(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "broken.csv", 'a,"never closed\n')

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "Un-terminated quoted field" in result.output
    assert "broken.csv" in result.output


def test_cli_reports_multiline_limit(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", 'a,"b\nc\nd"\n')

    result = cli_runner.invoke(cli, ["--multiline-limit", "2", str(target)])

    assert result.exit_code == 1
    assert "multiline limit of 2" in result.output


def test_cli_rejects_conflicting_characters(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", "a,b\n")

    result = cli_runner.invoke(cli, ["--separator", '"', str(target)])

    assert result.exit_code == 2
    assert "must be different" in result.output


def test_cli_rejects_negative_skip_lines(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "data.csv", "a,b\n")

    result = cli_runner.invoke(cli, ["--skip-lines", "-1", str(target)])

    assert result.exit_code == 2
    assert "non-negative" in result.output


def test_cli_rejects_symlink(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "actual.csv", "a,b\n")
    link = tmp_path / "alias.csv"
    os.symlink(target, link)

    result = cli_runner.invoke(cli, [str(link)])

    assert result.exit_code == 2
    assert "Symlinks are not supported" in result.output


def test_cli_rejects_path_outside_working_directory(cli_runner, tmp_path, monkeypatch):
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    target = _write(tmp_path, "outside.csv", "a,b\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 2
    assert "outside of the working directory" in result.output


def test_cli_enforces_file_size_limit(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CSV_TOKENIZER_MAX_FILE_SIZE", "8")
    target = _write(tmp_path, "data.csv", "a,b,c,d,e,f\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "exceeds the maximum allowed size" in result.output


def test_cli_rejects_invalid_size_limit(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CSV_TOKENIZER_MAX_FILE_SIZE", "lots")
    target = _write(tmp_path, "data.csv", "a,b\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "CSV_TOKENIZER_MAX_FILE_SIZE" in result.output


def test_cli_reports_invalid_utf8(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "bad.csv"
    target.write_bytes(b"a,b\n\xff\xfe,c\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 1
    assert "Invalid UTF-8 sequence in" in result.output
    assert not isinstance(result.exception, UnicodeDecodeError)
