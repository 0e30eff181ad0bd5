"""Tests for the command line entry point."""

import json

from timetable2ics import main


def write_records(path, occurrences):
    path.write_text(json.dumps([o.to_record() for o in occurrences]), encoding="utf-8")


class TestCLI:
    def test_exports_json_input(self, tmp_path, weekly_series, capsys):
        source = tmp_path / "sessions.json"
        write_records(source, weekly_series)
        out = tmp_path / "calendar"

        assert main([str(source), "-o", str(out), "--utc-offset", "+07:00"]) == 0

        text = (tmp_path / "calendar.ics").read_text(encoding="utf-8")
        assert "RRULE:" in text
        assert "Exported 1 recurring series and 0 single events." in capsys.readouterr().out

    def test_unchanged_snapshot_skips_export(self, tmp_path, weekly_series, capsys):
        source = tmp_path / "sessions.json"
        write_records(source, weekly_series)
        snapshot = tmp_path / "last.json"
        out = tmp_path / "out.ics"

        assert main([str(source), "-o", str(out), "--snapshot", str(snapshot)]) == 0
        out.unlink()
        assert main([str(source), "-o", str(out), "--previous", str(snapshot)]) == 0

        assert not out.exists()
        assert "Timetable unchanged" in capsys.readouterr().out

    def test_reports_invalid_records(self, tmp_path, weekly_series, capsys):
        source = tmp_path / "sessions.json"
        records = [o.to_record() for o in weekly_series]
        records.append({"date": "31/02/2024", "periods": "1", "class_code": "X"})
        source.write_text(json.dumps(records), encoding="utf-8")

        assert main([str(source), "-o", str(tmp_path / "out.ics")]) == 0
        assert "Warning [invalid_occurrence]" in capsys.readouterr().out

    def test_rejects_non_list_json(self, tmp_path, capsys):
        source = tmp_path / "sessions.json"
        source.write_text("{}", encoding="utf-8")

        assert main([str(source), "-o", str(tmp_path / "out.ics")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_input_file(self, tmp_path):
        assert main([str(tmp_path / "missing.json")]) == 1

    def test_missing_previous_snapshot_is_reported(self, tmp_path, weekly_series, capsys):
        source = tmp_path / "sessions.json"
        write_records(source, weekly_series)
        previous = tmp_path / "never-written.json"
        out = tmp_path / "out.ics"

        assert main([str(source), "-o", str(out), "--previous", str(previous)]) == 0

        assert f"No previous snapshot found at {previous}" in capsys.readouterr().out
        assert out.exists()
