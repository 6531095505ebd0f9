"""Unit tests for CLI terminal output."""

import io

import pytest

from bsky_archive.cli import output as out


class _TtyStream(io.StringIO):
    def isatty(self) -> bool:
        return True


class TestOutput:
    def test_plain_when_not_a_tty(self, capsys: pytest.CaptureFixture[str]):
        out.success("Saved raw.json")

        assert capsys.readouterr().out == "  ✓ Saved raw.json\n"

    def test_errors_go_to_stderr(self, capsys: pytest.CaptureFixture[str]):
        out.error("Post already archived: 3kabc123")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Post already archived: 3kabc123" in captured.err

    def test_colour_on_tty(self, monkeypatch: pytest.MonkeyPatch):
        stream = _TtyStream()
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setattr("sys.stdout", stream)

        out.warn("mirror failed")

        assert "\033[33m!\033[0m" in stream.getvalue()

    def test_no_color_env_wins(self, monkeypatch: pytest.MonkeyPatch):
        stream = _TtyStream()
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setattr("sys.stdout", stream)

        out.header("Archived posts (1)")

        assert stream.getvalue() == "\nArchived posts (1)\n"

    def test_kv(self, capsys: pytest.CaptureFixture[str]):
        out.kv("Archive directory", "./posts")

        assert capsys.readouterr().out == "  Archive directory:  ./posts\n"
