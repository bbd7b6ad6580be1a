"""Tests for structural search and the plain-text fallback."""

from pathlib import Path

import pytest

from astread.search import SearchRequest, find_files, search, search_code


def run(pattern: str, path: Path, **kwargs) -> dict:
    return search(SearchRequest(pattern=pattern, path=str(path), **kwargs))


class TestStructuralSearch:

    def test_directory_search(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path)
        assert result["success"] is True
        assert [(m["match_type"], m["line"]) for m in result["matches"]] == [
            ("export", 8),
            ("function_declaration", 8),
            ("function_call", 46),
        ]
        assert all(m["file"].endswith("app.js") for m in result["matches"])
        assert result["total_matches"] == 3
        assert result["files_searched"] == 5
        assert result["truncated"] is False

    def test_broken_file_is_skipped(self, sample_project_path: Path):
        result = run("ok", sample_project_path)
        assert result["success"] is True
        assert [Path(p).name for p in result["skipped"]] == ["broken.js"]

    def test_type_filter(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path / "app.js", type="function")
        assert [m["match_type"] for m in result["matches"]] == ["function_declaration"]
        match = result["matches"][0]
        assert match["code"] == "export function formatUser(user) {"
        assert match["column"] == 7
        assert match["modifiers"] == ["export"]
        assert "Formats a user" in match["jsdoc"]

    def test_call_scope(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path / "app.js", type="call")
        assert result["matches"][0]["scope"] == "class:Router"

    def test_dotted_callee_matches_last_segment(self, sample_project_path: Path):
        result = run("^readFileSync$", sample_project_path / "legacy.js", type="call")
        assert [m["name"] for m in result["matches"]] == ["fs.readFileSync"]
        assert result["matches"][0]["scope"] == "function:readConfig"

    def test_commonjs_imports(self, sample_project_path: Path):
        result = run("path|dotenv", sample_project_path / "legacy.js", type="import")
        assert [(m["match_type"], m["name"]) for m in result["matches"]] == [
            ("commonjs_import", "path"),
            ("commonjs_import", "dotenv"),
        ]

    def test_class_type(self, sample_project_path: Path):
        result = run("Cache", sample_project_path / "app.js", type="class")
        assert [m["name"] for m in result["matches"]] == ["UserCache"]

    def test_case_insensitive(self, sample_project_path: Path):
        assert run("FORMATUSER", sample_project_path / "app.js", type="function")["total_matches"] == 0
        result = run("FORMATUSER", sample_project_path / "app.js", type="function", case_insensitive=True)
        assert result["total_matches"] == 1

    def test_symbol_columns_count_characters(self, write_source):
        path = write_source("u.js", "const \u00e9 = 1; function foo(){}\n")
        result = run("foo", path, type="function")
        assert [(m["name"], m["column"]) for m in result["matches"]] == [("foo", 13)]

    def test_context_lines(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path / "app.js", type="function", context=1)
        match = result["matches"][0]
        assert match["context"] == {"before": [" */"], "after": ["  return `${user.first} ${user.last}`;"]}

    def test_asymmetric_context(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path / "app.js", type="function",
                     context_before=0, context_after=2)
        context = result["matches"][0]["context"]
        assert context["before"] == []
        assert len(context["after"]) == 2


class TestModifierSearch:

    def test_modifier_pattern_matches_every_carrier(self, sample_project_path: Path):
        result = run("async", sample_project_path / "app.js", modifiers=["async"])
        assert sorted(m["name"] for m in result["matches"]) == ["get", "loadUser"]

    def test_modifier_filter_with_name(self, sample_project_path: Path):
        result = run("create", sample_project_path / "app.js", modifiers=["static"])
        assert [(m["match_type"], m["name"]) for m in result["matches"]] == [("class_method", "create")]

    def test_export_modifier(self, sample_project_path: Path):
        result = run("export", sample_project_path / "app.js", modifiers=["export"])
        assert sorted(m["name"] for m in result["matches"]) == ["UserCache", "formatUser", "loadUser"]

    def test_all_modifiers_required(self, sample_project_path: Path):
        result = run("loadUser", sample_project_path / "app.js", modifiers=["const", "async"])
        assert result["total_matches"] == 1
        assert run("loadUser", sample_project_path / "app.js", modifiers=["let"])["total_matches"] == 0

    def test_typescript_accessibility(self, sample_project_path: Path):
        result = run("normalize", sample_project_path / "service.ts", modifiers=["private", "static"])
        assert [m["name"] for m in result["matches"]] == ["normalize"]


class TestTextSearch:

    def test_non_source_file(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path / "README.md")
        assert [(m["match_type"], m["line"], m["column"]) for m in result["matches"]] == [
            ("text_match", 3, 5),
            ("text_match", 4, 4),
        ]

    def test_every_match_on_a_line(self, write_source):
        path = write_source("notes.txt", "user user\nnobody\n")
        result = run("user", path)
        assert [m["column"] for m in result["matches"]] == [0, 5]

    def test_include_non_code(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path, include_non_code=True)
        assert "text_match" in {m["match_type"] for m in result["matches"]}
        assert result["files_searched"] == 6


class TestSearchScope:

    def test_glob(self, sample_project_path: Path):
        result = run("UserService", sample_project_path, glob_pattern="*.ts")
        assert result["files_searched"] == 1
        assert result["total_matches"] > 0

    def test_skip_dirs(self, write_source, temp_dir: Path):
        write_source("src/a.js", "function target() {}")
        write_source("node_modules/lib/b.js", "function target() {}")
        write_source("dist/c.js", "function target() {}")
        write_source(".cache/d.js", "function target() {}")
        assert [p.name for p in find_files(temp_dir)] == ["a.js"]
        assert run("target", temp_dir)["total_matches"] == 1

    def test_empty_directory(self, temp_dir: Path):
        result = run("x", temp_dir)
        assert result["success"] is True
        assert result["files_searched"] == 0
        assert result["matches"] == []

    def test_files_only(self, sample_project_path: Path):
        result = run("loadUser", sample_project_path, output_mode="file_paths")
        assert [Path(p).name for p in result["files"]] == ["app.js"]
        assert "matches" not in result

    def test_head_limit(self, sample_project_path: Path):
        result = run("formatUser", sample_project_path, head_limit=1)
        assert len(result["matches"]) == 1
        assert result["total_matches"] == 3
        assert result["truncated"] is True


class TestSearchErrors:

    def test_path_not_found(self, temp_dir: Path):
        result = run("x", temp_dir / "missing")
        assert result["success"] is False
        assert result["error_type"] == "PATH_NOT_FOUND"
        assert result["mode"] == "search"

    def test_invalid_pattern(self, sample_project_path: Path):
        result = run("(", sample_project_path)
        assert result["error_type"] == "INVALID_PATTERN"

    @pytest.mark.parametrize(
        "params",
        [
            {},
            {"pattern": "x", "type": "bogus"},
            {"pattern": "x", "output_mode": "tree"},
            {"pattern": "x", "modifiers": "async"},
            {"pattern": "x", "head_limit": "3"},
            {"pattern": "x", "head_limit": -1},
            {"pattern": "x", "context": True},
        ],
    )
    def test_validation(self, params: dict):
        result = search_code(params)
        assert result["success"] is False
        assert result["error_type"] == "VALIDATION_ERROR"

    def test_mapping_request(self, sample_project_path: Path):
        result = search_code({"pattern": "Store", "path": str(sample_project_path / "legacy.js"), "type": "class"})
        assert [m["name"] for m in result["matches"]] == ["Store"]

    def test_mapping_type_is_case_insensitive(self, sample_project_path: Path):
        result = search_code({"pattern": "Store", "path": str(sample_project_path / "legacy.js"), "type": "Class"})
        assert result["success"] is True
        assert result["total_matches"] == 1
