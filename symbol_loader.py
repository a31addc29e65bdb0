# symbol_loader.py
import time
from typing import Callable, Iterable, List, Optional

from config import (
    SOURCE_URL, FETCH_TIMEOUT, USER_AGENT, OUTPUT_PATH, CLASS_SEPARATOR,
    MIN_SYMBOLS, MUST_HAVE, MAX_MISSING_MUST_HAVE,
)
from fetcher import RawDocument, fetch_document
from logger import log
from normalizer import normalize_all
from parsers import detect_format
from resiliency import BuildResult, ResiliencyController, RetryPolicy
from seed_symbols import seed_symbol_set
from snapshot_store import JsonFileSnapshotStore, SnapshotStore
from validator import validate_symbols


def build_pipeline(
    url: str = SOURCE_URL,
    fetch: Optional[Callable[[str], RawDocument]] = None,
    min_symbols: int = MIN_SYMBOLS,
    must_have: Optional[Iterable[str]] = None,
    max_missing: int = MAX_MISSING_MUST_HAVE,
    separator: str = CLASS_SEPARATOR,
) -> Callable[[], List[str]]:
    """
    One unit of work: fetch -> parse -> normalize -> validate.
    Every call does a fresh fetch.
    """
    if fetch is None:
        fetch = lambda u: fetch_document(u, timeout=FETCH_TIMEOUT, user_agent=USER_AGENT)
    must_have = MUST_HAVE if must_have is None else list(must_have)

    def run_once() -> List[str]:
        log.info(f"[build] fetching {url}")
        doc = fetch(url)
        shape, candidates = detect_format(doc.text)
        if doc.shape and shape and doc.shape != shape:
            log.debug(f"[build] server declared {doc.shape}, parsed as {shape}")
        symbols = normalize_all(candidates, separator)
        log.info(f"[build] {len(candidates)} candidates -> {len(symbols)} normalized symbols")
        return validate_symbols(
            symbols,
            min_symbols=min_symbols,
            must_have=must_have,
            max_missing=max_missing,
            separator=separator,
        )

    return run_once


def build_symbols(
    url: str = SOURCE_URL,
    store: Optional[SnapshotStore] = None,
    policy: Optional[RetryPolicy] = None,
    separator: str = CLASS_SEPARATOR,
    sleep: Callable[[float], None] = time.sleep,
    **pipeline_kwargs,
) -> BuildResult:
    """Build the symbol artifact from `url`, falling back as needed."""
    if store is None:
        store = JsonFileSnapshotStore(OUTPUT_PATH)
    pipeline = build_pipeline(url, separator=separator, **pipeline_kwargs)
    controller = ResiliencyController(
        pipeline,
        store,
        seed=seed_symbol_set(separator),
        policy=policy,
        sleep=sleep,
        canonicalize=lambda symbols: normalize_all(symbols, separator),
    )
    return controller.run()
