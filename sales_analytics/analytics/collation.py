"""
Locale-aware string ordering.

Sort keys that approximate a Unicode collation for Latin text:
- digit runs compare numerically ("Lot 9" < "Lot 10")
- ``base`` strength ignores accents and case
- ``accent`` strength ignores case but orders unaccented letters first

Every key ends with the raw string so that sorting is a total order and
therefore independent of input order.
"""

import re
import unicodedata
from typing import Tuple

BASE = "base"
ACCENT = "accent"

_CHUNK_RE = re.compile(r"(\d+)")


def _strip_marks(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _chunks(text: str) -> Tuple[Tuple[int, int, str], ...]:
    parts = []
    for part in _CHUNK_RE.split(text):
        if not part:
            continue
        if part.isdigit():
            parts.append((0, int(part), ""))
        else:
            parts.append((1, 0, part))
    return tuple(parts)


def _accent_marks(text: str) -> Tuple[str, ...]:
    """Combining marks attached to each base character, in order."""
    marks = []
    for ch in unicodedata.normalize("NFKD", text):
        if unicodedata.combining(ch) and marks:
            marks[-1] += ch
        else:
            marks.append("")
    return tuple(marks)


def collation_key(text: str, strength: str = ACCENT) -> tuple:
    primary = _chunks(_strip_marks(text).casefold())
    if strength == BASE:
        return (primary, (), _case_key(text), text)
    return (primary, _accent_marks(text.casefold()), _case_key(text), text)


def _case_key(text: str) -> Tuple[bool, ...]:
    # lowercase sorts before uppercase
    return tuple(ch.isupper() for ch in text)


def compare(a: str, b: str, strength: str = ACCENT) -> int:
    """Three-way comparison at the given strength, ignoring the tie-break levels."""
    ka = _significant(a, strength)
    kb = _significant(b, strength)
    return (ka > kb) - (ka < kb)


def _significant(text: str, strength: str) -> tuple:
    primary = _chunks(_strip_marks(text).casefold())
    if strength == BASE:
        return (primary,)
    return (primary, _accent_marks(text.casefold()))


def locale_equal(a: str, b: str, strength: str = BASE) -> bool:
    return compare(a, b, strength) == 0
