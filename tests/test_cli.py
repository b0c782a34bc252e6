"""
Tests for the command-line interface (beforeafter/cli.py)
"""
import json

import pytest
from PIL import Image

from beforeafter.cli import main
from beforeafter.storage.database import RecordDatabase

from .helpers import gradient_image, make_image


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    make_image(64, 64, (0, 0, 0)).save(tmp_path / "before.png")
    make_image(64, 64, (255, 255, 255)).save(tmp_path / "after.png")
    gradient_image(1600, 900).save(tmp_path / "large.png")
    (tmp_path / "notes.txt").write_text("not an image")
    return tmp_path


def run(workspace, *argv):
    main(["--database", str(workspace / "records.db"), *argv])


def only_record(workspace):
    records = RecordDatabase(workspace / "records.db").list_all()
    assert len(records) == 1
    return records[0]


class TestAdd:
    """Test the add command"""

    def test_add_with_score(self, workspace, capsys):
        run(workspace, "add", "Fence", "--before", "before.png", "--after", "after.png",
            "--date", "2024-04-01")
        out = capsys.readouterr().out
        assert "Added: Fence" in out
        record = only_record(workspace)
        assert record.date == "2024-04-01"
        assert record.change_score >= 99

    def test_add_without_after(self, workspace, capsys):
        run(workspace, "add", "Fence", "--before", "before.png")
        assert "Change score: -" in capsys.readouterr().out
        assert only_record(workspace).change_score is None

    def test_add_rejects_non_image(self, workspace, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run(workspace, "add", "Fence", "--before", "notes.txt")
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().out
        assert RecordDatabase(workspace / "records.db").count() == 0

    def test_add_missing_file(self, workspace):
        with pytest.raises(SystemExit):
            run(workspace, "add", "Fence", "--before", "missing.png")

    def test_auto_save(self, workspace):
        main(["--database", str(workspace / "records.db"), "--auto-save", "auto.json",
              "add", "Fence", "--before", "before.png"])
        data = json.loads((workspace / "auto.json").read_text())
        assert data[0]["title"] == "Fence"


class TestManage:
    """Test list, show, edit and delete"""

    @pytest.fixture
    def record_id(self, workspace):
        run(workspace, "add", "Fence", "--before", "before.png", "--after", "after.png",
            "--date", "2024-04-01")
        return only_record(workspace).id

    def test_list(self, workspace, record_id, capsys):
        run(workspace, "list", "--search", "fen")
        out = capsys.readouterr().out
        assert "Fence" in out
        assert "Total: 1 record(s)" in out

    def test_list_no_match(self, workspace, record_id, capsys):
        run(workspace, "list", "--search", "roof")
        assert "No records found" in capsys.readouterr().out

    def test_show_by_prefix(self, workspace, record_id, capsys):
        run(workspace, "show", record_id[:6])
        assert record_id in capsys.readouterr().out

    def test_edit(self, workspace, record_id):
        score = only_record(workspace).change_score
        run(workspace, "edit", record_id, "--title", "New fence", "--date", "2024-05-01")
        record = only_record(workspace)
        assert record.title == "New fence"
        assert record.date == "2024-05-01"
        assert record.change_score == score

    def test_edit_requires_change(self, workspace, record_id):
        with pytest.raises(SystemExit):
            run(workspace, "edit", record_id)

    def test_delete(self, workspace, record_id):
        run(workspace, "delete", record_id)
        assert RecordDatabase(workspace / "records.db").count() == 0

    def test_unknown_id(self, workspace, record_id):
        with pytest.raises(SystemExit):
            run(workspace, "show", "zzzz")


class TestExchange:
    """Test export and import"""

    def test_export_and_import_into_new_database(self, workspace, capsys):
        run(workspace, "add", "Fence", "--before", "before.png", "--after", "after.png")
        run(workspace, "export", "out.json")
        main(["--database", str(workspace / "other.db"), "import", "out.json"])
        assert "Imported 1 new record(s)" in capsys.readouterr().out

        main(["--database", str(workspace / "other.db"), "import", "out.json"])
        assert "Imported 0 new record(s)" in capsys.readouterr().out

    def test_import_invalid(self, workspace):
        (workspace / "bad.json").write_text("{}")
        with pytest.raises(SystemExit):
            run(workspace, "import", "bad.json")


class TestImageCommands:
    """Test compare, normalize and reveal"""

    def test_compare(self, workspace, capsys):
        run(workspace, "compare", "before.png", "before.png")
        assert "Change score: 0%" in capsys.readouterr().out

    def test_normalize_to_file(self, workspace):
        run(workspace, "normalize", "large.png", "--output", "large.txt")
        assert (workspace / "large.txt").read_text().startswith("data:image/jpeg;base64,")

    def test_normalize_respects_env(self, workspace, monkeypatch, capsys):
        monkeypatch.setenv("BEFOREAFTER_MAX_DIMENSION", "100")
        run(workspace, "normalize", "large.png")
        assert capsys.readouterr().out.strip().startswith("data:image/jpeg;base64,")

    def test_reveal(self, workspace):
        run(workspace, "add", "Fence", "--before", "before.png", "--after", "after.png")
        record_id = only_record(workspace).id
        run(workspace, "reveal", record_id, "--position", "25", "--output", "split.png")
        with Image.open(workspace / "split.png") as img:
            assert img.size == (64, 64)
            assert img.getpixel((2, 32))[0] < 20
            assert img.getpixel((60, 32))[0] > 235

    def test_reveal_unknown_extension(self, workspace, capsys):
        run(workspace, "add", "Fence", "--before", "before.png", "--after", "after.png")
        record_id = only_record(workspace).id
        with pytest.raises(SystemExit) as exc_info:
            run(workspace, "reveal", record_id, "--output", "split.unknownext")
        assert exc_info.value.code == 1
        assert "Error: could not write" in capsys.readouterr().out
