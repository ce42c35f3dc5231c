"""Tests for JSON and CSV export."""

import json
from datetime import datetime, timezone, timedelta

import pytest

from modules.bulk_operations.exceptions import ExportError
from modules.bulk_operations.export import (
    TabularExporter,
    escape_cell,
    format_cell,
    format_number,
    render_csv,
    render_json,
    resolve_field_path,
)
from modules.bulk_operations.models import ExportField


class TestCsvCells:
    """Test cases for cell formatting and escaping."""
    
    @pytest.mark.parametrize("text,expected", [
        ("plain", "plain"),
        ("Smith, John", '"Smith, John"'),
        ('He said "hi"', '"He said ""hi"""'),
        ("line one\nline two", '"line one\nline two"'),
        ("", ""),
    ])
    def test_escape_cell(self, text, expected):
        """Test that cells are quoted only when needed."""
        assert escape_cell(text) == expected
    
    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (3, "3"),
        (3.0, "3"),
        (2.5, "2.5"),
        (["x", "y"], '["x","y"]'),
        ({"a": 1}, '{"a":1}'),
        ("Zoë", "Zoë"),
    ])
    def test_format_cell(self, value, expected):
        """Test the plain text of resolved values."""
        assert format_cell(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (1e21, "1e+21"),
        (1.5e21, "1.5e+21"),
        (123456789012345680000.0, "123456789012345680000"),
        (1e16, "10000000000000000"),
        (1e-7, "1e-7"),
        (-2.5e-8, "-2.5e-8"),
        (1e-6, "0.000001"),
        (0.00001, "0.00001"),
        (0.1, "0.1"),
        (-1234.5, "-1234.5"),
        (-0.0, "0"),
        (float("nan"), "NaN"),
        (float("-inf"), "-Infinity"),
    ])
    def test_format_number(self, value, expected):
        """Test that floats use positional notation only within [1e-6, 1e21)."""
        assert format_number(value) == expected
        assert format_cell(value) == expected


class TestResolveFieldPath:
    """Test cases for dot-path resolution."""
    
    def test_nested_and_list_segments(self):
        """Test walking mappings and list indexes."""
        record = {"client": {"name": "Acme"}, "crew": [{"name": "Dana"}]}
        
        assert resolve_field_path(record, "client.name") == "Acme"
        assert resolve_field_path(record, "crew.0.name") == "Dana"
    
    @pytest.mark.parametrize("path", ["missing", "client.missing", "crew.5.name", "client.name.deeper"])
    def test_missing_paths_render_empty(self, path):
        """Test that unresolvable paths become empty cells."""
        record = {"client": {"name": "Acme"}, "crew": [{"name": "Dana"}]}
        
        assert format_cell(resolve_field_path(record, path)) == ""


class TestRenderCsv:
    """Test cases for render_csv."""
    
    def test_header_and_rows(self):
        """Test a document with labels, nesting and quoting."""
        records = [
            {"name": "Smith, John", "client": {"name": "Acme"}},
            {"name": 'He said "hi"'},
        ]
        fields = [{"path": "name", "label": "Name"}, ExportField(path="client.name", label="Client")]
        
        assert render_csv(records, fields) == (
            'Name,Client\n'
            '"Smith, John",Acme\n'
            '"He said ""hi""",'
        )
    
    def test_list_values_are_json_then_escaped(self):
        """Test that list cells are rendered as quoted JSON."""
        assert render_csv([{"tags": ["x", "y"]}], [{"path": "tags", "label": "A"}]) == (
            'A\n"[""x"",""y""]"'
        )
    
    def test_zero_records_gives_header_only(self):
        """Test that an empty export still has its header."""
        assert render_csv([], ["id", "status"]) == "id,status"
    
    def test_header_labels_are_written_as_given(self):
        """Test that labels are joined without quoting, even with commas."""
        csv_text = render_csv([{"a": 1}], [{"path": "a", "label": "Last, First"}, "b"])
        
        assert csv_text == "Last, First,b\n1,"
    
    def test_padded_path_resolves_its_own_key(self):
        """Test that whitespace in a field path is not trimmed away."""
        records = [{" name": "padded", "name": "plain"}]
        
        assert render_csv(records, [" name"]) == " name\npadded"
    
    @pytest.mark.parametrize("fields", [[], None, [{"label": "No path"}], [42]])
    def test_invalid_field_specs(self, fields):
        """Test that empty or malformed field specs are rejected."""
        with pytest.raises(ExportError):
            render_csv([{"a": 1}], fields)
    
    def test_non_mapping_record(self):
        """Test that records must be mappings."""
        with pytest.raises(ExportError):
            render_csv(["not a record"], ["a"])


class TestRenderJson:
    """Test cases for render_json."""
    
    def test_round_trip(self):
        """Test that the JSON document parses back to the records."""
        records = [{"id": "p1", "tags": ["x"], "client": {"name": "Zoë"}}, {"id": "p2"}]
        
        text = render_json(records)
        
        assert json.loads(text) == records
        assert "Zoë" in text
        assert text.startswith("[\n  {")
    
    def test_datetimes_are_iso_formatted(self):
        """Test that timestamps are written as ISO 8601 strings."""
        when = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        
        assert json.loads(render_json([{"at": when}])) == [{"at": "2024-03-01T12:00:00+00:00"}]
    
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_floats_become_null(self, value):
        """Test that NaN and infinities are written as null, keeping the document valid JSON."""
        def reject_constant(name):
            raise ValueError(f"non-standard JSON token {name}")
        
        text = render_json([{"v": value, "nested": [value, {"w": value}]}])
        
        assert json.loads(text, parse_constant=reject_constant) == [{"v": None, "nested": [None, {"w": None}]}]
    
    def test_unserializable_value(self):
        """Test that unsupported values raise ExportError."""
        with pytest.raises(ExportError):
            render_json([{"value": object()}])


class TestTabularExporter:
    """Test cases for TabularExporter."""
    
    @pytest.fixture
    def exporter(self, tmp_path):
        return TabularExporter(tmp_path, clock=lambda: datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc))
    
    def test_build_filename(self, exporter):
        """Test the dated filename pattern."""
        assert exporter.build_filename("projects", "csv") == "projects_2024-03-01.csv"
        assert exporter.build_filename("", "json") == "export_2024-03-01.json"
    
    def test_filename_uses_utc_date(self, tmp_path):
        """Test that the date is taken in UTC."""
        local = timezone(timedelta(hours=13))
        exporter = TabularExporter(tmp_path, clock=lambda: datetime(2024, 3, 2, 8, 0, tzinfo=local))
        
        assert exporter.build_filename("projects", "csv") == "projects_2024-03-01.csv"
    
    def test_export_json(self, exporter, tmp_path):
        """Test writing a JSON export."""
        path = exporter.export_json([{"id": "p1"}], filename="projects")
        
        assert path == tmp_path / "projects_2024-03-01.json"
        assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "p1"}]
    
    def test_export_csv_keeps_newlines(self, exporter):
        """Test writing a CSV export with embedded newlines untouched."""
        path = exporter.export_csv([{"note": "a\nb"}], ["note"], filename="notes")
        
        with open(path, encoding="utf-8", newline="") as f:
            assert f.read() == 'note\n"a\nb"'
    
    def test_export_csv_requires_fields(self, exporter, tmp_path):
        """Test that nothing is written without a field spec."""
        with pytest.raises(ExportError):
            exporter.export_csv([{"a": 1}], [])
        
        assert list(tmp_path.iterdir()) == []
    
    def test_creates_output_directory(self, tmp_path):
        """Test that missing output directories are created."""
        exporter = TabularExporter(tmp_path / "nested" / "dir")
        
        path = exporter.export_json([], filename="empty")
        
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == []
