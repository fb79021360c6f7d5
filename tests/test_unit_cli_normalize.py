"""
Tests for the graphql-normalize command.

Tests cover:
- Reading from a file path
- Reading from stdin (explicit '-' and default)
- Minified output
- Exit status and messages for unreadable input and invalid documents
"""

import io

import pytest

from cli.normalize import build_parser, main


class TestArgumentParsing:
    @pytest.mark.anyio
    async def test_defaults_to_stdin(self):
        args = build_parser().parse_args([])
        assert args.path == "-"
        assert args.minify is False

    @pytest.mark.anyio
    async def test_minify_flag(self):
        args = build_parser().parse_args(["-m", "query.graphql"])
        assert args.path == "query.graphql"
        assert args.minify is True


class TestMain:
    @pytest.mark.anyio
    async def test_normalizes_file(self, tmp_path, capsys):
        path = tmp_path / "query.graphql"
        path.write_text("query Q { b a }", encoding="utf-8")

        assert main([str(path)]) == 0

        assert capsys.readouterr().out == "query Q {\n  a\n  b\n}\n"

    @pytest.mark.anyio
    async def test_minified_output(self, tmp_path, capsys):
        path = tmp_path / "query.graphql"
        path.write_text("query Q { b a }", encoding="utf-8")

        assert main(["--minify", str(path)]) == 0

        assert capsys.readouterr().out == "query Q{a b}\n"

    @pytest.mark.anyio
    @pytest.mark.parametrize("argv", [[], ["-"]])
    async def test_reads_stdin(self, argv, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("{ b a }"))

        assert main(argv) == 0

        assert capsys.readouterr().out == "{\n  a\n  b\n}\n"

    @pytest.mark.anyio
    async def test_missing_file_fails(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.graphql")]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("Unable to read input:")

    @pytest.mark.anyio
    async def test_invalid_document_fails(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("{ a "))

        assert main([]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("Could not normalize: Invalid GraphQL:")

    @pytest.mark.anyio
    async def test_schema_document_fails(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("type Query { a: Int }"))

        assert main([]) == 1

        assert "Could not normalize" in capsys.readouterr().err
