"""Utility helpers used by the sample project."""

from __future__ import annotations

import os
import json as _json
from pathlib import Path
from .models import User, Order as _Order

__all__ = ["slugify", "Registry", "double"]


def slugify(text: str) -> str:
    """Turn text into a URL slug."""
    return text.lower().replace(" ", "-")


async def fetch(url, *args, timeout=10, **kwargs):
    return url


double = lambda x: x * 2


class Registry(dict):
    """Keeps named entries."""

    def register(self, name, value):
        self[name] = value

    @staticmethod
    def create():
        return Registry()

    @property
    def size(self):
        return len(self)

    async def refresh(self):
        await fetch(os.environ.get("REGISTRY_URL", ""))
