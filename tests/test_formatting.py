from src.finance.formatting import format_currency, format_percentage


def test_format_currency():
    assert format_currency(1044774.522) == "$1,044,774.52"
    assert format_currency(-250.5) == "-$250.50"
    assert format_currency(10, "GBP") == "£10.00"
    assert format_currency(10, "JPY") == "JPY 10.00"


def test_format_percentage():
    assert format_percentage(0.0525) == "5.25%"
    assert format_percentage(0) == "0.00%"
