"""
Version comparison and package.json engines matching (pure).

A small subset of npm's semver: versions may be partial ("18",
"18.2") and may carry a leading "v"; pre-release tags are ignored.

No I/O, no subprocess.
"""

from __future__ import annotations

import re
from typing import NamedTuple

_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class SemVer(NamedTuple):
    major: int
    minor: int
    patch: int

    @property
    def version(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse(version: str | None) -> SemVer | None:
    """Parse ``"v20.1"`` into ``SemVer(20, 1, 0)``; None if not a version."""
    if not version or not isinstance(version, str):
        return None
    cleaned = version.strip()
    if cleaned.startswith("v"):
        cleaned = cleaned[1:]
    match = _VERSION_RE.match(cleaned)
    if not match:
        return None
    major, minor, patch = match.groups()
    return SemVer(int(major), int(minor or 0), int(patch or 0))


def valid(version: str | None) -> str | None:
    parsed = parse(version)
    return parsed.version if parsed else None


def major(version: str) -> int:
    """Major component.

    Raises:
        ValueError: If ``version`` does not parse.
    """
    parsed = parse(version)
    if parsed is None:
        raise ValueError(f"Invalid Version: {version}")
    return parsed.major


def compare(a: str, b: str) -> int:
    """Return -1, 0 or 1.

    Raises:
        ValueError: If either side does not parse.
    """
    pa, pb = parse(a), parse(b)
    if pa is None:
        raise ValueError(f"Invalid Version: {a}")
    if pb is None:
        raise ValueError(f"Invalid Version: {b}")
    return (pa > pb) - (pa < pb)


def gt(a: str, b: str) -> bool:
    return compare(a, b) == 1


# ── package.json "engines" matching ─────────────────────────────


def _loose_parts(version: str) -> tuple[int, int, int]:
    parts = []
    for raw in version.lstrip("v").split(".")[:3]:
        digits = re.match(r"\d+", raw)
        parts.append(int(digits.group()) if digits else 0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def engines_satisfies(version: str, range_str: str) -> bool:
    """Lenient check used for the ``engines`` field of package.json.

    Understands exact versions, ``>=``, caret (same major), tilde (same
    major.minor), ``N.x`` / ``N.*`` and a bare major (treated as a
    minimum).  Anything else is assumed satisfied, so an exotic range
    never produces a false failure.
    """
    current = _loose_parts(version)
    rng = range_str.strip()

    if re.fullmatch(r"\d+\.\d+\.\d+", rng):
        return current == tuple(int(n) for n in rng.split("."))

    if rng.startswith(">="):
        return current >= _loose_parts(rng[2:].strip())

    if rng.startswith("^"):
        return current[0] == _loose_parts(rng[1:].strip())[0]

    if rng.startswith("~"):
        wanted = _loose_parts(rng[1:].strip())
        return current[:2] == wanted[:2]

    if re.match(r"^\d+\.x", rng) or re.match(r"^\d+\.\*", rng):
        return current[0] == int(rng.split(".")[0])

    if re.fullmatch(r"\d+", rng):
        return current[0] >= int(rng)

    return True
