"""Cycle and task number allocation."""

from __future__ import annotations

import re
from typing import Iterable

from .templates import pad_number


def existing_numbers(names: Iterable[str], width: int) -> list[int]:
    """Return the numeric prefixes of names shaped like ``<digits>-<slug>``."""
    pattern = re.compile(rf"^(\d{{{width}}})-")
    numbers = []
    for name in names:
        match = pattern.match(name)
        if match:
            numbers.append(int(match.group(1)))
    return numbers


def next_number(names: Iterable[str], width: int) -> str:
    """Get the next unused number above the highest existing one, zero-padded."""
    numbers = existing_numbers(names, width)
    return pad_number(max(numbers) + 1 if numbers else 1, width)


def slugify(value: str) -> str:
    """Convert a title to the kebab-case slug used in file and directory names."""
    slug = re.sub(r"\s+", "-", value.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)
