"""Pytest configuration and fixtures for astread tests."""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

# Keep a developer's ~/.astread/config.toml out of the test run
os.environ["ASTREAD_HOME"] = str(Path(tempfile.gettempdir()) / "astread-tests-home")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def write_source(temp_dir: Path) -> Callable[[str, str], Path]:
    """Write *text* to *name* inside the temporary directory."""

    def _write(name: str, text: str) -> Path:
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(text.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def ten_line_file(write_source) -> Path:
    """A JavaScript file with exactly ten lines."""
    return write_source("ten.js", "\n".join(f"const v{i} = {i};" for i in range(1, 11)))


@pytest.fixture
def sample_class_source() -> str:
    """Class with plain, static and async methods."""
    return "class C { m(){} static s(){} async a(){} }"


@pytest.fixture
def sample_duplicate_methods() -> str:
    """Two classes declaring a method with the same name."""
    return '''class First {
  run() {
    return 1;
  }
}

class Second {
  run() {
    return 2;
  }

  stop() {}
}

function run() {
  return 0;
}
'''
