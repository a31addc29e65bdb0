# validator.py
import re
from typing import Iterable, List, Optional, Pattern

from config import CLASS_SEPARATOR, MIN_SYMBOLS, MUST_HAVE, MAX_MISSING_MUST_HAVE
from errors import ValidationError
from logger import log
from normalizer import normalize_all


def symbol_pattern(separator: str = CLASS_SEPARATOR) -> Pattern:
    """1-10 chars, leading alphanumeric, only the configured class separator."""
    return re.compile(rf"[A-Z0-9][A-Z0-9{re.escape(separator)}\-]{{0,9}}")


def missing_must_have(symbols: Iterable[str], must_have: Iterable[str],
                      separator: str = CLASS_SEPARATOR) -> List[str]:
    present = set(symbols)
    return sorted(s for s in set(normalize_all(must_have, separator)) if s not in present)


def validate_symbols(
    candidates: Iterable[str],
    min_symbols: int = MIN_SYMBOLS,
    must_have: Optional[Iterable[str]] = None,
    max_missing: int = MAX_MISSING_MUST_HAVE,
    separator: str = CLASS_SEPARATOR,
) -> List[str]:
    """
    Deduplicate, drop structurally implausible entries and sort.

    Raises ValidationError when fewer than `min_symbols` survive. A short
    must-have list is only checked for a warning.
    """
    pattern = symbol_pattern(separator)
    unique = set(candidates)
    rejected = sorted(s for s in unique if not pattern.fullmatch(s))
    symbols = sorted(s for s in unique if pattern.fullmatch(s))

    if rejected:
        log.debug(f"[validate] dropped {len(rejected)} implausible entries: {rejected[:10]}")

    if len(symbols) < min_symbols:
        raise ValidationError(observed=len(symbols), required=min_symbols)

    must_have = MUST_HAVE if must_have is None else must_have
    missing = missing_must_have(symbols, must_have, separator)
    if len(missing) > max_missing:
        log.warning(
            f"[validate] {len(missing)} expected symbols missing "
            f"(tolerating {max_missing}): {', '.join(missing)}"
        )

    log.info(f"[validate] {len(symbols)} valid symbols (minimum {min_symbols})")
    return symbols
