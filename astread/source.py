"""Source loading: file bytes to an immutable :class:`SourceDocument`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .errors import SourceNotFoundError
from .models import SourceDocument

logger = logging.getLogger(__name__)


def load_source(file_path: Union[str, Path]) -> SourceDocument:
    """Read *file_path* as UTF-8 text.

    The bytes are decoded without newline translation so that every slice
    taken from the document is an exact substring of the file.

    Raises:
        SourceNotFoundError: if the path does not exist.
        OSError / UnicodeDecodeError: for unreadable or non-UTF-8 files.
    """
    path = Path(file_path)
    if not path.exists():
        raise SourceNotFoundError(f"File not found: {file_path}")
    text = path.read_bytes().decode("utf-8")
    logger.debug("Loaded %s (%d bytes)", path, len(text))
    return SourceDocument.from_text(str(file_path), text)
