"""Tests for the Python grammar adapter."""

from pathlib import Path

from astread.models import SourceDocument
from astread.parser import parse_source
from astread.grammars import get_adapter
from astread.grammars.python import PythonAdapter
from astread.reader import ReadRequest, execute


def read(path: Path, **kwargs) -> dict:
    return execute(ReadRequest(file_path=str(path), **kwargs))


class TestPythonOutline:

    def test_language(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="outline")
        assert result["success"] is True
        assert result["language"] == "python"

    def test_functions(self, sample_project_path: Path):
        functions = read(sample_project_path / "util.py", mode="outline")["structure"]["functions"]
        assert [(f["name"], f["line"], f["type"]) for f in functions] == [
            ("slugify", 13, "function_declaration"),
            ("fetch", 18, "function_declaration"),
            ("double", 22, "lambda"),
        ]
        assert functions[0]["signature"] == "def slugify(text)"
        assert functions[0]["jsdoc"] == "Turn text into a URL slug."
        assert functions[1]["async"] is True
        assert functions[1]["signature"] == "async def fetch(url, ..., ..., ...)"
        assert functions[2]["signature"] == "double = lambda x"

    def test_class(self, sample_project_path: Path):
        classes = read(sample_project_path / "util.py", mode="outline")["structure"]["classes"]
        assert len(classes) == 1
        registry = classes[0]
        assert (registry["name"], registry["line"], registry["extends"]) == ("Registry", 25, "dict")
        assert registry["jsdoc"] == "Keeps named entries."
        methods = {m["name"]: m for m in registry["methods"]}
        assert list(methods) == ["register", "create", "size", "refresh"]
        assert methods["create"]["static"] is True
        assert methods["create"]["line"] == 32
        assert methods["create"]["signature"] == "static def create()"
        assert methods["refresh"]["async"] is True
        assert methods["register"]["signature"] == "def register(self, name, value)"

    def test_imports(self, sample_project_path: Path):
        imports = read(sample_project_path / "util.py", mode="outline")["structure"]["imports"]
        assert [(i["source"], i["imported"]) for i in imports] == [
            ("__future__", ["annotations"]),
            ("os", ["os"]),
            ("json", ["_json"]),
            ("pathlib", ["Path"]),
            (".models", ["User", "Order"]),
        ]
        assert imports[2]["raw"] == "import json as _json"

    def test_wildcard_and_multi_module_imports(self, write_source):
        path = write_source("w.py", "import a, b.c\nfrom m import *\n")
        imports = read(path, mode="outline")["structure"]["imports"]
        assert [(i["source"], i["imported"], i["line"]) for i in imports] == [
            ("a", ["a"], 1),
            ("b.c", ["b.c"], 1),
            ("m", ["*"], 2),
        ]

    def test_dunder_all_exports(self, sample_project_path: Path):
        exports = read(sample_project_path / "util.py", mode="outline")["structure"]["exports"]
        assert [(e["type"], e["name"], e["line"]) for e in exports] == [
            ("named", "slugify", 10),
            ("named", "Registry", 10),
            ("named", "double", 10),
        ]

    def test_nested_function_in_method_not_top_level(self, write_source):
        source = "class A:\n    def run(self):\n        def inner():\n            pass\n        return inner\n"
        result = read(write_source("n.py", source), mode="outline")
        assert result["structure"]["functions"] == []
        assert [m["name"] for m in result["structure"]["classes"][0]["methods"]] == ["run"]

    def test_syntax_error_is_failure(self, write_source):
        result = read(write_source("bad.py", "def broken(:\n    pass\n"), mode="outline")
        assert result["success"] is False
        assert result["partial_structure"]["functions"] == []


class TestPythonTargets:

    def test_function(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="target", target="function:slugify")
        assert (result["line"], result["end_line"]) == (13, 15)

    def test_lambda(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="target", target="function:double",
                      context=False)
        assert result["code"] == "double = lambda x: x * 2"

    def test_class(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="target", target="class:Registry")
        assert (result["line"], result["end_line"]) == (25, 40)

    def test_decorated_member_includes_decorator(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="target", target="class:Registry.create",
                      context=False)
        assert (result["line"], result["end_line"]) == (31, 33)
        assert result["code"].strip().startswith("@staticmethod")

    def test_method_search(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="target", target="method:refresh")
        assert result["class_name"] == "Registry"
        assert result["line"] == 39

    def test_function_falls_back_to_method(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="target", target="function:register")
        assert result["target_type"] == "method"

    def test_missing_member(self, sample_project_path: Path):
        result = read(sample_project_path / "util.py", mode="target", target="class:Registry.nope")
        assert result["error_type"] == "TARGET_NOT_FOUND"
        assert "not found in class 'Registry'" in result["hint"]


class TestPythonSymbols:

    def test_adapter_registry(self):
        assert isinstance(get_adapter("python"), PythonAdapter)

    def test_symbols(self, sample_project_path: Path):
        text = (sample_project_path / "util.py").read_text()
        doc = SourceDocument.from_text("util.py", text)
        tree = parse_source(text, "python")
        symbols = get_adapter("python").symbols(tree.root_node, doc)
        by_type = {(s.match_type, s.name): s for s in symbols}
        assert ("function_declaration", "slugify") in by_type
        assert by_type[("class_method", "create")].modifiers == ("static",)
        assert by_type[("class_method", "size")].modifiers == ("get",)
        assert by_type[("class_method", "refresh")].modifiers == ("async",)
        assert by_type[("lambda", "double")].category == "function"
        assert ("import", "pathlib") in by_type
        assert ("export", "Registry") in by_type
        call = by_type[("function_call", "os.environ.get")]
        assert call.scope == "class:Registry > function:refresh"
        assert call.line == 40
