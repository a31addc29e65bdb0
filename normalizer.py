# normalizer.py
import re
from typing import Iterable, List, Optional

from config import CLASS_SEPARATOR

FOOTNOTE_RE = re.compile(r"\[[^\[\]]*\]")          # [12], [a], [note 1]
DISALLOWED_RE = re.compile(r"[^A-Z0-9./\-]")
CLASS_SHARE_RE = re.compile(r"^([A-Z0-9]+)[./]([A-Z])$")  # BRK.B, BF/B
NBSP = "\u00a0"


def normalize_symbol(raw, separator: str = CLASS_SEPARATOR) -> Optional[str]:
    """
    Map a raw candidate to its canonical ticker, or None if nothing is left.

    Applying it to its own output returns the same value.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    s = FOOTNOTE_RE.sub("", s)
    s = s.replace(NBSP, "")
    s = s.upper()
    s = DISALLOWED_RE.sub("", s)
    s = CLASS_SHARE_RE.sub(lambda m: f"{m.group(1)}{separator}{m.group(2)}", s)
    return s or None


def normalize_all(candidates: Iterable, separator: str = CLASS_SEPARATOR) -> List[str]:
    """Normalize every candidate, dropping the ones that come back empty."""
    normalized = (normalize_symbol(c, separator) for c in candidates)
    return [s for s in normalized if s]
