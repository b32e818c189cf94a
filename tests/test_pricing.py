import pytest

from wellness_booking.domain.pricing.calculator import (
    INVALID_PROMO_MESSAGE,
    calculate_price,
    clamp_participants,
    is_valid_promo_code,
)


@pytest.mark.parametrize("participants", [1, 2, 3])
def test_no_group_discount_up_to_three_participants(participants):
    price = calculate_price(60, participants)

    assert price.subtotal == 60 * participants
    assert price.discount == 0
    assert price.total == 60 * participants


@pytest.mark.parametrize("participants", [4, 7, 10])
def test_group_discount_above_three_participants(participants):
    price = calculate_price(60, participants)

    assert price.discount == pytest.approx(0.10 * 60 * participants)
    assert price.total == pytest.approx(0.90 * 60 * participants)


def test_four_participants_example():
    price = calculate_price(60, 4)

    assert price.subtotal == 240
    assert price.discount == pytest.approx(24)
    assert price.summary()["total"] == 216.00


def test_promo_code_is_case_insensitive_and_trimmed():
    price = calculate_price(60, 4, "  decouverte20 ")

    assert price.promoCodeValid is True
    assert price.promoCode == "DECOUVERTE20"
    assert price.promoDiscount == pytest.approx(43.2)
    assert price.summary()["total"] == 172.80


def test_invalid_promo_code_is_signalled_without_discount():
    price = calculate_price(60, 4, "XYZ")

    assert price.promoDiscount == 0
    assert price.promoCodeValid is False
    assert price.promoMessage == INVALID_PROMO_MESSAGE
    assert price.promoCode is None
    assert price.total == pytest.approx(216)


@pytest.mark.parametrize("code", [None, "", "   "])
def test_empty_promo_code_clears_discount_silently(code):
    price = calculate_price(60, 2, code)

    assert price.promoDiscount == 0
    assert price.promoCodeValid is None
    assert price.promoMessage is None


def test_summary_rounds_for_display_only():
    price = calculate_price(33.33, 3, "DECOUVERTE20")

    assert price.total == pytest.approx(33.33 * 3 * 0.8)
    assert price.summary()["total"] == round(33.33 * 3 * 0.8, 2)
    assert price.summary()["promoDiscount"] == round(33.33 * 3 * 0.2, 2)


def test_negative_unit_price_is_rejected():
    with pytest.raises(ValueError):
        calculate_price(-5, 1)


@pytest.mark.parametrize("value,expected", [(0, 1), (-3, 1), (1, 1), (6, 6), (10, 10), (15, 10)])
def test_clamp_participants(value, expected):
    assert clamp_participants(value) == expected


def test_is_valid_promo_code():
    assert is_valid_promo_code("Decouverte20")
    assert not is_valid_promo_code("DECOUVERTE")
    assert not is_valid_promo_code(None)
