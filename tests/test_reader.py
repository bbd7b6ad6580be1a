"""Tests for the full and lines modes, dispatch and request validation."""

from pathlib import Path

import pytest

from astread.reader import ReadRequest, execute, read_file


class TestFullMode:

    def test_full_file(self, sample_project_path: Path):
        path = sample_project_path / "legacy.js"
        result = execute(ReadRequest(file_path=str(path)))
        text = path.read_text()
        assert result["success"] is True
        assert result["mode"] == "full"
        assert result["content"] == text
        assert result["line_count"] == len(text.split("\n"))

    def test_size_is_utf8_bytes(self, write_source):
        path = write_source("u.js", "const s = 'héllo';\n")
        result = execute(ReadRequest(file_path=str(path)))
        assert result["size_bytes"] == len("const s = 'héllo';\n".encode("utf-8"))

    def test_full_mode_does_not_parse(self, sample_project_path: Path):
        result = execute(ReadRequest(file_path=str(sample_project_path / "broken.js"), mode="full"))
        assert result["success"] is True

    def test_crlf_preserved(self, write_source):
        path = write_source("w.js", "a();\r\nb();\r\n")
        result = execute(ReadRequest(file_path=str(path)))
        assert result["content"] == "a();\r\nb();\r\n"


class TestLinesMode:

    def test_window(self, ten_line_file: Path):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="lines", line=5,
                                     lines_above=2, lines_below=1))
        assert result["success"] is True
        assert (result["start_line"], result["end_line"]) == (3, 6)
        assert (result["lines_above"], result["lines_below"]) == (2, 1)
        assert result["content"] == "const v3 = 3;\nconst v4 = 4;\nconst v5 = 5;\nconst v6 = 6;"
        assert result["total_lines"] == 10
        assert result["target_line"] == 5

    def test_default_window_clamped(self, ten_line_file: Path):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="lines", line=2))
        assert (result["start_line"], result["end_line"]) == (1, 10)
        assert (result["lines_above"], result["lines_below"]) == (1, 8)

    def test_zero_window(self, ten_line_file: Path):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="lines", line=4,
                                     lines_above=0, lines_below=0))
        assert result["content"] == "const v4 = 4;"

    def test_line_out_of_range(self, ten_line_file: Path):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="lines", line=999999))
        assert result["success"] is False
        assert result["error_type"] == "LINE_OUT_OF_RANGE"
        assert "10 lines" in result["error"]

    @pytest.mark.parametrize("line", [0, -3])
    def test_line_below_one(self, ten_line_file: Path, line: int):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="lines", line=line))
        assert result["error_type"] == "LINE_OUT_OF_RANGE"

    def test_missing_line(self, ten_line_file: Path):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="lines"))
        assert result["error_type"] == "MISSING_LINE"
        assert result["mode"] == "lines"

    def test_summary(self, ten_line_file: Path):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="lines", line=5,
                                     lines_above=1, lines_below=1, verbose=False))
        assert result["summary"] == "Showing line 5 (4-6 of 10 total lines)"


class TestErrors:
    """Every failure is a record with the uniform error shape."""

    def test_file_not_found(self, temp_dir: Path):
        path = temp_dir / "missing.js"
        result = execute(ReadRequest(file_path=str(path), mode="outline"))
        assert result == {
            "success": False,
            "error": f"File not found: {path}",
            "error_type": "FILE_NOT_FOUND",
            "file_path": str(path),
            "mode": "outline",
        }

    def test_invalid_mode(self, ten_line_file: Path):
        result = execute(ReadRequest(file_path=str(ten_line_file), mode="summary"))
        assert result["error_type"] == "INVALID_MODE"
        assert result["mode"] == "summary"

    def test_missing_file_reported_before_invalid_mode(self, temp_dir: Path):
        result = execute(ReadRequest(file_path=str(temp_dir / "nope.js"), mode="summary"))
        assert result["error_type"] == "FILE_NOT_FOUND"

    def test_directory_is_read_error(self, temp_dir: Path):
        result = execute(ReadRequest(file_path=str(temp_dir)))
        assert result["success"] is False
        assert result["error_type"] == "READ_ERROR"
        assert result["hint"]

    def test_undecodable_file_is_read_error(self, temp_dir: Path):
        path = temp_dir / "bin.js"
        path.write_bytes(b"\xff\xfe\x00bad")
        result = execute(ReadRequest(file_path=str(path)))
        assert result["error_type"] == "READ_ERROR"


class TestReadFileMapping:
    """JSON-style requests."""

    def test_camel_case_aliases(self, ten_line_file: Path):
        result = read_file({"file_path": str(ten_line_file), "mode": "lines", "line": 5,
                            "linesAbove": 1, "linesBelow": 0})
        assert (result["start_line"], result["end_line"]) == (4, 5)

    def test_defaults_to_full(self, ten_line_file: Path):
        assert read_file({"file_path": str(ten_line_file)})["mode"] == "full"

    def test_missing_path(self):
        result = read_file({"mode": "outline"})
        assert result["error_type"] == "VALIDATION_ERROR"
        assert result["file_path"] is None

    @pytest.mark.parametrize("field,value", [("line", "5"), ("line", True), ("context", 1), ("target", 3)])
    def test_mistyped_field(self, ten_line_file: Path, field: str, value):
        result = read_file({"file_path": str(ten_line_file), "mode": "lines", field: value})
        assert result["success"] is False
        assert result["error_type"] == "VALIDATION_ERROR"
        assert field in result["error"]

    def test_null_fields_use_defaults(self, ten_line_file: Path):
        result = read_file({"file_path": str(ten_line_file), "mode": "lines", "line": 3, "linesAbove": None})
        assert result["start_line"] == 1

    def test_camel_case_file_path(self, ten_line_file: Path):
        result = read_file({"filePath": str(ten_line_file), "mode": "lines", "line": 1, "linesBelow": 0})
        assert result["content"] == "const v1 = 1;"

    def test_negative_window_rejected(self, ten_line_file: Path):
        result = read_file({"file_path": str(ten_line_file), "mode": "lines", "line": 3, "linesAbove": -1})
        assert result["error_type"] == "VALIDATION_ERROR"
        assert "linesAbove" in result["error"]
        assert result["mode"] == "lines"
