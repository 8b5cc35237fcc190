"""
Reference codes and sort keys for hierarchy positions.

Indices are 0-based on input; codes are 1-based ("P1.T2.S3").
sort_key = (p+1)*1_000_000 + (t+1)*1_000 + (s+1), so it is injective only
while a parent holds at most LEVEL_CAPACITY themes/subtheme children.
"""
from __future__ import annotations

import re
from typing import Optional, Tuple

PILLAR_WEIGHT = 1_000_000
THEME_WEIGHT = 1_000
LEVEL_CAPACITY = 999

Position = Tuple[int, Optional[int], Optional[int]]

_CODE_RE = re.compile(r"^P([1-9]\d*)(?:\.T([1-9]\d*)(?:\.S([1-9]\d*))?)?$")


def ref_code(pillar_index: int, theme_index: Optional[int] = None, subtheme_index: Optional[int] = None) -> str:
    p = f"P{pillar_index + 1}"
    if theme_index is None:
        return p
    t = f"T{theme_index + 1}"
    if subtheme_index is None:
        return f"{p}.{t}"
    return f"{p}.{t}.S{subtheme_index + 1}"


def sort_key(pillar_index: int, theme_index: Optional[int] = None, subtheme_index: Optional[int] = None) -> int:
    key = (pillar_index + 1) * PILLAR_WEIGHT
    if theme_index is None:
        return key
    key += (theme_index + 1) * THEME_WEIGHT
    if subtheme_index is None:
        return key
    return key + subtheme_index + 1


def parse_ref_code(code: str) -> Position:
    m = _CODE_RE.match(code or "")
    if not m:
        raise ValueError(f"malformed ref_code: {code!r}")
    p, t, s = m.groups()
    return (
        int(p) - 1,
        int(t) - 1 if t is not None else None,
        int(s) - 1 if s is not None else None,
    )


def level_of(position: Position) -> str:
    _, t, s = position
    if t is None:
        return "pillar"
    if s is None:
        return "theme"
    return "subtheme"
