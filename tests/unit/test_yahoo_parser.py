import pytest

from quote_scraper.core.errors import ExtractionError
from quote_scraper.sources.yahoo import QuoteUrlBuilder, build_quote_url
from quote_scraper.sources.yahoo_parser import YahooQuoteParser, parse_price_text
from tests.conftest import NO_PRICE_HTML, quote_html


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("97.85", 97.85),
        (" 97.85 ", 97.85),
        ("1,234.50", 1234.5),
        ("0", 0.0),
        ("-3.2", -3.2),
    ],
)
def test_parse_price_text(raw, expected):
    assert parse_price_text(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "   ", "N/A", "97.85 USD", "nan", "inf"])
def test_parse_price_text_rejects(raw):
    with pytest.raises(ExtractionError):
        parse_price_text(raw)


def test_extract_price_from_quote_page():
    assert YahooQuoteParser().extract_price(quote_html("97.85")) == pytest.approx(97.85)


def test_extract_price_returns_none_when_marker_missing():
    assert YahooQuoteParser().extract_price(NO_PRICE_HTML) is None


def test_extract_price_ignores_marker_outside_header():
    html = '<html><body><span data-reactid="32">12.00</span></body></html>'
    assert YahooQuoteParser().extract_price(html) is None


def test_extract_price_unparseable_text_carries_selector():
    parser = YahooQuoteParser()
    with pytest.raises(ExtractionError) as excinfo:
        parser.extract_price(quote_html("--"))
    assert excinfo.value.selector == parser.selector
    assert excinfo.value.raw_value == "--"


def test_custom_selector():
    parser = YahooQuoteParser(selector="fin-streamer[data-field=regularMarketPrice]")
    html = '<fin-streamer data-field="regularMarketPrice" value="10.5">10.50</fin-streamer>'
    assert parser.extract_price(html) == pytest.approx(10.5)


def test_build_quote_url():
    assert build_quote_url("VFV.TO") == "https://finance.yahoo.com/quote/VFV.TO?p=VFV.TO"


def test_build_quote_url_encodes_ticker():
    assert build_quote_url("^GSPC") == "https://finance.yahoo.com/quote/%5EGSPC?p=%5EGSPC"


def test_build_quote_url_rejects_blank_ticker():
    with pytest.raises(ValueError):
        build_quote_url("  ")


def test_quote_url_builder_uses_template():
    builder = QuoteUrlBuilder("https://ca.finance.yahoo.com/quote/{ticker}")
    assert builder("XEQT.TO") == "https://ca.finance.yahoo.com/quote/XEQT.TO"
