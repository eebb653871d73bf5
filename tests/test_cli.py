"""Tests for the command-line entry point."""
import json

import pytest

from docintake.cli import main
from tests.conftest import make_pdf


@pytest.mark.usefixtures("restore_logging")
class TestCli:
    def test_process_json(self, tmp_path, capsys):
        path = tmp_path / "notes.txt"
        path.write_text("meeting notes for tuesday")
        main(["process", str(path)])
        payload = json.loads(capsys.readouterr().out)
        assert "meeting notes for tuesday" in payload["combined_text"]
        assert payload["has_unprocessable_files"] is False
        assert payload["stats"]["methods_used"] == ["text_decode"]

    def test_process_text_output(self, tmp_path, capsys):
        path = tmp_path / "run.sh"
        path.write_text("echo hello\n")
        main(["-o", "text", "process", str(path)])
        out = capsys.readouterr().out
        assert "Code file: run.sh (Shell Script," in out
        assert "```sh\necho hello\n```" in out

    def test_process_metrics(self, tmp_path, capsys):
        path = tmp_path / "a.txt"
        path.write_text("x")
        main(["process", "--metrics", str(path)])
        err = capsys.readouterr().err
        assert "docintake_batches_processed_total" in err

    def test_detect(self, tmp_path, capsys):
        pdf_path = tmp_path / "scan"
        pdf_path.write_bytes(make_pdf())
        txt_path = tmp_path / "readme.md"
        txt_path.write_text("# hi")
        main(["detect", str(pdf_path), str(txt_path)])
        rows = json.loads(capsys.readouterr().out)
        assert rows[0]["format"] == "pdf"
        assert rows[1]["format"] == "code"

    def test_no_command_exits(self, capsys):
        with pytest.raises(SystemExit):
            main([])
