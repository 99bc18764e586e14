from decimal import Decimal

import pytest

from watchshot.services.ownership import (
    ActionKind,
    Ownership,
    format_price,
    parse_price_locale,
)
from watchshot.services.store import Product, Receipt


def make_product(model, price="0.99", locale="en_US@currency=USD"):
    return Product(model.product_identifier, Decimal(price), locale)


def make_receipt(model):
    return Receipt(model.product_identifier, "txn-1")


def test_free_regardless_of_store_data(small, resolver):
    sport = small.all_models[0]
    sport.product = Product("com.example.any", Decimal("1.00"), "en_US@currency=USD")
    sport.receipt = Receipt("com.example.any", "txn-1")
    assert resolver.resolve(sport) is Ownership.FREE


def test_activation_flag_owns_without_product(small, resolver, preferences):
    secret = small.all_models[2]
    assert resolver.resolve(secret) is Ownership.UNAVAILABLE

    preferences.set_bool("activated.secret", True)
    assert resolver.resolve(secret) is Ownership.OWNED


def test_receipt_owns(small, resolver):
    steel = small.all_models[1]
    steel.receipt = make_receipt(steel)
    assert resolver.resolve(steel) is Ownership.OWNED


def test_product_without_receipt_is_for_sale(small, resolver):
    steel = small.all_models[1]
    steel.product = make_product(steel)
    assert resolver.resolve(steel) is Ownership.FOR_SALE


def test_unset_activation_flag_falls_through_to_product(small, resolver, preferences):
    edition = small.all_models[3]
    edition.product = make_product(edition)
    assert resolver.resolve(edition) is Ownership.FOR_SALE

    preferences.set_bool("activated.edition", False)
    assert resolver.resolve(edition) is Ownership.FOR_SALE

    preferences.set_bool("activated.edition", True)
    assert resolver.resolve(edition) is Ownership.OWNED


def test_receipt_wins_over_product(small, resolver):
    steel = small.all_models[1]
    steel.product = make_product(steel)
    steel.receipt = make_receipt(steel)
    assert resolver.resolve(steel) is Ownership.OWNED


def test_usable_ownerships():
    assert Ownership.FREE.is_usable
    assert Ownership.OWNED.is_usable
    assert not Ownership.FOR_SALE.is_usable
    assert not Ownership.UNAVAILABLE.is_usable


def test_share_action_for_free_model(small, resolver):
    action = resolver.action_for(small.all_models[0])
    assert action.kind is ActionKind.SHARE
    assert action.title == "Share"
    assert action.enabled
    assert not action.offers_restore


def test_buy_action_shows_price(small, resolver):
    steel = small.all_models[1]
    steel.product = make_product(steel)
    action = resolver.action_for(steel)
    assert action.kind is ActionKind.BUY
    assert action.title == "Buy - $0.99"
    assert action.enabled
    assert action.offers_restore


def test_unavailable_action_is_disabled(small, resolver):
    action = resolver.action_for(small.all_models[1])
    assert action.kind is ActionKind.DISABLED
    assert action.title == "Unavailable"
    assert not action.enabled
    assert action.offers_restore


@pytest.mark.parametrize("price,locale,expected", [
    ("0.99", "en_US@currency=USD", "$0.99"),
    ("1.99", "en_GB@currency=GBP", "£1.99"),
    ("1234.5", "en_US@currency=USD", "$1,234.50"),
    ("120", "ja_JP@currency=JPY", "¥120"),
    ("0.99", "de_DE@currency=EUR", "0,99 €"),
    ("1234.5", "de_DE@currency=EUR", "1.234,50 €"),
    ("1234567", "it_IT@currency=EUR", "1.234.567,00 €"),
    ("1299", "fr_FR@currency=EUR", "1 299,00 €"),
    ("1", "en_CH@currency=CHF", "CHF 1.00"),
])
def test_format_price(price, locale, expected):
    product = Product("com.example.p", Decimal(price), locale)
    assert format_price(product) == expected


def test_parse_price_locale():
    assert parse_price_locale("en_GB@currency=GBP") == ("en", "GB", "GBP")
    # Region implies the currency when none is given
    assert parse_price_locale("en_AU") == ("en", "AU", "AUD")
    assert parse_price_locale("en") == ("en", None, None)
