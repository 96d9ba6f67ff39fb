"""Tests for eventy/exporter.py"""

import json
import os

import pytest

from eventy.errors import ExportError
from eventy.exporter import MatchedSet, export_json, record_to_dict
from tests.conftest import make_record


class TestRecordToDict:
    def test_fields(self):
        data = record_to_dict(
            make_record(42, level=2, keywords=("Classic",), message="Disk {0}", properties=("C:",)),
            "WS\\alice",
        )
        assert data["record_id"] == 42
        assert data["level"] == 2
        assert data["level_name"] == "Error"
        assert data["source"] == "TestProvider"
        assert data["user"] == "WS\\alice"
        assert data["keywords"] == ["Classic"]
        assert data["logged"] == "2025-05-15T14:30:00"
        assert data["description"] == "Disk C:"

    def test_absent_values_are_null(self):
        data = record_to_dict(make_record(record_id=None, level=None, ts=None, provider_name=None))
        assert data["record_id"] is None
        assert data["level_name"] is None
        assert data["logged"] is None
        assert data["source"] is None
        assert data["keywords"] == []


class TestMatchedSet:
    def test_preserves_order(self):
        matched = MatchedSet()
        for rid in (5, 3, 9):
            matched.add(make_record(rid))
        assert len(matched) == 3
        assert [item["record_id"] for item in matched.to_list()] == [5, 3, 9]


class TestExportJson:
    def test_no_path_is_noop(self, tmp_path):
        assert export_json(["a"], None) is False
        assert os.listdir(tmp_path) == []

    def test_writes_json(self, tmp_path):
        path = tmp_path / "out.json"
        assert export_json(["Application", "Système"], str(path)) is True
        assert json.loads(path.read_text(encoding="utf-8")) == ["Application", "Système"]

    def test_overwrites_existing(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("old content")
        export_json([1, 2], str(path))
        assert json.loads(path.read_text(encoding="utf-8")) == [1, 2]

    def test_unserializable_leaves_file_untouched(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("keep me")
        with pytest.raises(ExportError):
            export_json([object()], str(path))
        assert path.read_text() == "keep me"

    def test_unwritable_location(self, tmp_path):
        with pytest.raises(ExportError):
            export_json([1], str(tmp_path / "no-such-dir" / "out.json"))

    def test_no_temp_files_left_behind(self, tmp_path):
        export_json([1], str(tmp_path / "out.json"))
        assert os.listdir(tmp_path) == ["out.json"]
