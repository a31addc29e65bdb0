import json
import unittest
from unittest import mock

from errors import ParseError
from normalizer import normalize_all
from parsers import (
    CsvColumnParser, HtmlTableParser, JsonListParser, detect_format, extract_candidates,
)
from validator import validate_symbols

HTML_EXAMPLE = """<html><body>
<table>
  <tr><th>Symbol</th><th>Name</th></tr>
  <tr><td>AAPL</td><td>Apple</td></tr>
  <tr><td>GOOGL</td><td>Alphabet (Class A)</td></tr>
  <tr><td>GOOG</td><td>Alphabet (Class C)</td></tr>
</table>
</body></html>"""

WIKI_STYLE = """<!DOCTYPE html><html><body>
<table class="wikitable"><tr><th>Year</th><th>Event</th></tr>
  <tr><td>2000</td><td>Index launched</td></tr></table>
<table class="wikitable sortable" id="constituents">
  <thead><tr><th>Name</th><th>Symbol<sup>[1]</sup></th><th>Sector</th></tr></thead>
  <tbody>
    <tr><td><a href="/wiki/Apple_Inc.">Apple Inc.</a></td>
        <td><a href="https://www.nasdaq.com/market-activity/stocks/aapl">AAPL</a></td>
        <td>Information Technology</td></tr>
    <tr><td><a href="/wiki/Microsoft">Microsoft</a></td>
        <td>MSFT<sup>[2]</sup></td>
        <td>Information Technology</td></tr>
    <tr><td><a href="/wiki/Berkshire_Hathaway">Berkshire Hathaway</a></td>
        <td><a href="https://www.nyse.com/quote/XNYS:BRK.B">BRK.B</a></td>
        <td>Financials</td></tr>
  </tbody>
</table></body></html>"""


class TestJsonListParser(unittest.TestCase):

    def test_array(self):
        shape, candidates = detect_format('["AAPL", "msft", null, 7]')
        self.assertEqual(shape, "json")
        self.assertEqual(candidates, ["AAPL", "msft", "7"])

    def test_object_with_tickers_field(self):
        payload = json.dumps({"updated": "2024-01-01", "tickers": ["AAPL", "MSFT"]})
        self.assertEqual(extract_candidates(payload), ["AAPL", "MSFT"])

    def test_object_with_other_array_field(self):
        payload = json.dumps({"count": 2, "constituents": [{"symbol": "AAPL"}, {"ticker": "MSFT"}]})
        self.assertEqual(JsonListParser().extract(payload), ["AAPL", "MSFT"])

    def test_not_json(self):
        self.assertFalse(JsonListParser().accepts("Symbol\nAAPL\n"))
        self.assertFalse(JsonListParser().accepts('"just a string"'))


class TestCsvColumnParser(unittest.TestCase):

    def test_symbol_column_example(self):
        """CSV example normalizes to AAPL, BRK.B, MSFT."""
        text = "Symbol\nAAPL\nmsft\n BRK.B \n"
        shape, candidates = detect_format(text)
        self.assertEqual(shape, "csv")
        symbols = validate_symbols(normalize_all(candidates, "."), min_symbols=2, must_have=[], separator=".")
        self.assertEqual(symbols, ["AAPL", "BRK.B", "MSFT"])

    def test_ticker_column_by_header(self):
        text = "Company,Ticker,Weight\nApple,AAPL,7.1\nMicrosoft,MSFT,6.9\n"
        self.assertEqual(extract_candidates(text), ["AAPL", "MSFT"])

    def test_header_match_is_case_insensitive(self):
        text = "Name, SYMBOL \nApple,AAPL\n"
        self.assertEqual(CsvColumnParser().extract(text), ["AAPL"])

    def test_defaults_to_first_column(self):
        text = "Code,Name\nAAPL,Apple\nMSFT,Microsoft\n"
        self.assertEqual(extract_candidates(text), ["AAPL", "MSFT"])

    def test_blank_lines_skipped(self):
        self.assertEqual(extract_candidates("Symbol\nAAPL\n\n\nMSFT\n"), ["AAPL", "MSFT"])

    def test_header_only(self):
        self.assertEqual(CsvColumnParser().extract("Symbol\n"), [])

    def test_trailing_delimiters_keep_column_alignment(self):
        """A trailing comma on every row must not shift the symbol column."""
        text = "Symbol,Name\nAAPL,Apple,\nMSFT,Microsoft,\n"
        self.assertEqual(detect_format(text), ("csv", ["AAPL", "MSFT"]))

    def test_unquoted_comma_in_later_field(self):
        text = "Symbol,Name\nAAPL,Apple, Inc.\nMSFT,Microsoft\n"
        self.assertEqual(extract_candidates(text), ["AAPL", "MSFT"])

    def test_short_rows_are_skipped_for_missing_column(self):
        text = "Name,Symbol\nApple,AAPL\nMicrosoft\nAlphabet,GOOGL\n"
        self.assertEqual(CsvColumnParser().extract(text), ["AAPL", "GOOGL"])

    def test_markup_is_not_csv(self):
        self.assertFalse(CsvColumnParser().accepts("<html><table></table></html>"))


class TestHtmlTableParser(unittest.TestCase):

    def test_html_example(self):
        shape, candidates = detect_format(HTML_EXAMPLE)
        self.assertEqual(shape, "html")
        self.assertEqual(candidates, ["AAPL", "GOOGL", "GOOG"])
        symbols = validate_symbols(normalize_all(candidates), min_symbols=2, must_have=[])
        self.assertEqual(symbols, ["AAPL", "GOOG", "GOOGL"])

    def test_locates_symbol_column_and_prefers_link_text(self):
        candidates = HtmlTableParser().extract(WIKI_STYLE)
        self.assertEqual(candidates, ["AAPL", "MSFT [2]", "BRK.B"])
        self.assertEqual(normalize_all(candidates, "."), ["AAPL", "MSFT", "BRK.B"])

    def test_long_link_text_falls_back_to_cell_text(self):
        html = """<table><tr><th>Symbol</th></tr>
        <tr><td><a href="/wiki/Berkshire_Hathaway">Berkshire Hathaway</a> BRK.B</td></tr></table>"""
        self.assertEqual(HtmlTableParser().extract(html), ["Berkshire Hathaway BRK.B"])

    def test_row_header_cells_keep_column_alignment(self):
        html = """<table><tr><th>#</th><th>Symbol</th></tr>
        <tr><th>1</th><td>AAPL</td></tr>
        <tr><th>2</th><td>MSFT</td></tr></table>"""
        self.assertEqual(HtmlTableParser().extract(html), ["AAPL", "MSFT"])

    def test_footnote_links_are_not_symbols(self):
        """A linked footnote reference in the symbol cell falls back to the cell text."""
        html = """<table><tr><th>Symbol</th><th>Name</th></tr>
        <tr><td><a href="https://www.nasdaq.com/aapl">AAPL</a></td><td>Apple</td></tr>
        <tr><td>BRK.B<sup class="reference"><a href="#cite_note-2">[2]</a></sup></td>
            <td>Berkshire Hathaway</td></tr>
        <tr><td><a href="#cite_note-3">[3]</a> GOOGL</td><td>Alphabet</td></tr>
        </table>"""
        candidates = HtmlTableParser().extract(html)
        self.assertEqual(normalize_all(candidates, "."), ["AAPL", "BRK.B", "GOOGL"])

    def test_real_link_after_footnote_is_used(self):
        html = """<table><tr><th>Symbol</th></tr>
        <tr><td><sup><a href="/wiki/Note">[a]</a></sup><a href="https://www.nyse.com/ko">KO</a></td></tr>
        </table>"""
        self.assertEqual(HtmlTableParser().extract(html), ["KO"])

    def test_no_qualifying_table(self):
        html = "<html><table><tr><th>Name</th></tr><tr><td>Apple</td></tr></table></html>"
        with self.assertRaises(ParseError):
            detect_format(html)

    def test_qualifying_table_without_rows_is_empty(self):
        html = "<table><tr><th>Symbol</th></tr></table>"
        self.assertEqual(detect_format(html), (None, []))


class TestDetectFormat(unittest.TestCase):

    def test_empty_document(self):
        for text in ("", "   \n"):
            with self.assertRaises(ParseError):
                detect_format(text)

    def test_document_no_parser_accepts(self):
        """A payload that no registered strategy claims is a parse failure, not an empty list."""
        with mock.patch("parsers.PARSERS", (JsonListParser(),)):
            with self.assertRaises(ParseError):
                detect_format("Symbol\nAAPL\n")


if __name__ == '__main__':
    unittest.main()
