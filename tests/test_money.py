from backend.app.core.money import format_cents, sum_cents


def test_format_cents():
    assert format_cents(10050) == "100.50"
    assert format_cents(5) == "0.05"
    assert format_cents(0) == "0.00"
    assert format_cents(-150) == "-1.50"


def test_sum_cents_treats_none_as_zero():
    assert sum_cents([100, None, 250]) == 350
    assert sum_cents([]) == 0
