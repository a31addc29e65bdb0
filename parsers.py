# parsers.py
"""
Format detection for the constituents document.

The source may be a JSON export, a CSV export (e.g. a published Google Sheet)
or an HTML page with a constituents table (Wikipedia). Each parser exposes
`accepts(text)` and `extract(text)`; `detect_format` walks PARSERS in order and
keeps the first non-empty candidate list.
"""
import io
import json
from typing import List, Optional, Tuple

import pandas as pd
from bs4 import BeautifulSoup

from errors import ParseError
from logger import log

SYMBOL_HEADERS = ("symbol", "ticker")
JSON_LIST_FIELDS = ("tickers", "symbols")
MAX_LINK_TEXT = 6


def _looks_like_markup(text: str) -> bool:
    return text.lstrip().startswith("<")


def _json_value_to_candidate(item) -> Optional[str]:
    if item is None:
        return None
    if isinstance(item, dict):
        for key in ("symbol", "Symbol", "ticker", "Ticker"):
            if item.get(key) is not None:
                return str(item[key])
        return None
    return str(item)


class JsonListParser:
    shape = "json"

    def _load(self, text: str):
        try:
            return json.loads(text)
        except ValueError:
            return None

    def accepts(self, text: str) -> bool:
        return isinstance(self._load(text), (list, dict))

    def extract(self, text: str) -> List[str]:
        payload = self._load(text)
        if isinstance(payload, dict):
            items = next(
                (payload[k] for k in JSON_LIST_FIELDS if isinstance(payload.get(k), list)),
                None,
            )
            if items is None:
                # any field holding an array will do
                items = next((v for v in payload.values() if isinstance(v, list)), None)
            payload = items
        if not isinstance(payload, list):
            return []
        candidates = [_json_value_to_candidate(item) for item in payload]
        return [c for c in candidates if c is not None]


class CsvColumnParser:
    shape = "csv"

    def accepts(self, text: str) -> bool:
        return not _looks_like_markup(text)

    @staticmethod
    def _symbol_column(columns) -> int:
        headers = [str(c).lstrip("\ufeff").strip().strip('"').strip().lower() for c in columns]
        for name in SYMBOL_HEADERS:
            if name in headers:
                return headers.index(name)
        return 0

    def extract(self, text: str) -> List[str]:
        # Rows may carry trailing delimiters or unquoted commas, so read every
        # line positionally against the widest row instead of trusting the header.
        width = max((line.count(",") for line in text.splitlines()), default=0) + 1
        try:
            df = pd.read_csv(
                io.StringIO(text),
                header=None,
                names=list(range(width)),
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
            log.debug(f"[parse] CSV strategy does not apply: {e}")
            return []

        if len(df) < 2:
            return []
        header, rows = df.iloc[0], df.iloc[1:]
        idx = self._symbol_column(header.fillna("").tolist())
        log.debug(f"[parse] CSV symbol column #{idx} ({header.iloc[idx]!r})")
        return [v for v in rows.iloc[:, idx].dropna().astype(str).tolist() if v]


class HtmlTableParser:
    shape = "html"

    def accepts(self, text: str) -> bool:
        return _looks_like_markup(text) or "<table" in text.lower()

    @staticmethod
    def _header_row(table):
        return next((tr for tr in table.find_all("tr") if tr.find("th")), None)

    @staticmethod
    def _is_footnote_link(link) -> bool:
        return link.get("href", "").startswith("#") or link.find_parent("sup") is not None

    @classmethod
    def _cell_candidate(cls, cell) -> str:
        link = next((a for a in cell.find_all("a") if not cls._is_footnote_link(a)), None)
        if link is not None:
            link_text = link.get_text(strip=True)
            if 1 <= len(link_text) <= MAX_LINK_TEXT:
                return link_text
        return cell.get_text(" ", strip=True)

    def extract(self, text: str) -> List[str]:
        soup = BeautifulSoup(text, "html.parser")
        tables = soup.find_all("table")
        candidates: List[str] = []
        qualified = 0

        for table in tables:
            header_row = self._header_row(table)
            if header_row is None:
                continue
            headers = [
                c.get_text(" ", strip=True).lower()
                for c in header_row.find_all(["th", "td"], recursive=False)
            ]
            col = next((i for i, h in enumerate(headers) if "symbol" in h), None)
            if col is None:
                continue

            qualified += 1
            for tr in table.find_all("tr"):
                if tr is header_row or tr.find("td", recursive=False) is None:
                    continue
                cells = tr.find_all(["td", "th"], recursive=False)
                if col < len(cells):
                    candidates.append(self._cell_candidate(cells[col]))

        if not qualified:
            raise ParseError(
                f"No table with a 'symbol' header found ({len(tables)} tables scanned); "
                f"page layout likely changed"
            )
        log.debug(f"[parse] {qualified} qualifying table(s), {len(candidates)} rows")
        return candidates


PARSERS = (JsonListParser(), CsvColumnParser(), HtmlTableParser())


def detect_format(text: str) -> Tuple[Optional[str], List[str]]:
    """
    Try each parser in order and return (shape, candidates) for the first one
    that accepts the payload and yields something. Returns (None, []) when
    every applicable parser came back empty; the validator rejects that later.
    """
    if not text or not text.strip():
        raise ParseError("Empty document")

    accepted = False
    for parser in PARSERS:
        if not parser.accepts(text):
            continue
        accepted = True
        candidates = parser.extract(text)
        if candidates:
            log.info(f"[parse] {parser.shape.upper()} strategy produced {len(candidates)} candidates")
            return parser.shape, candidates
        log.debug(f"[parse] {parser.shape.upper()} strategy produced nothing, trying next")

    if not accepted:
        raise ParseError("No parser accepts the document")
    log.warning("[parse] no strategy produced any candidates")
    return None, []


def extract_candidates(text: str) -> List[str]:
    return detect_format(text)[1]
