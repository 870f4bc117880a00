# src/scensim_core/upgrade/version.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .exceptions import VersionParseError

_VERSION_REGEX = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class FrameworkVersion:
    """A released framework version, ordered by (major, minor, patch)."""
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> FrameworkVersion:
        match = _VERSION_REGEX.match(text.strip())
        if match is None:
            raise VersionParseError(text=text, details="expected three dot-separated numbers.")
        return cls(*(int(part) for part in match.groups()))

    @classmethod
    def from_template_tag(cls, tag: str) -> FrameworkVersion:
        """Template tags are git tags, written with a leading 'v'."""
        stripped = tag.strip()
        return cls.parse(stripped[1:] if stripped.startswith("v") else stripped)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def template_tag(self) -> str:
        return f"v{self}"


def is_sorted(versions: Iterable[FrameworkVersion]) -> bool:
    versions = list(versions)
    return all(a < b for a, b in zip(versions, versions[1:]))
