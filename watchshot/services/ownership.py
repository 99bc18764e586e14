#!/usr/bin/env python3
"""
Ownership Resolver

Works out whether the user may share a watch model, can buy it, or
cannot get it at all, and what the share/buy action should look like.

Ownership is never stored: it is evaluated on demand from the model's
product identifier, activation key, receipt and product, plus the locally
stored activation flags.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

from watchshot.services.preferences import Preferences


class Ownership(Enum):
    """
    Ownership status of watch models:
     - FREE: this model has no associated purchase.
     - OWNED: the purchase of this model is owned, or it was activated.
     - FOR_SALE: this model is available for purchase.
     - UNAVAILABLE: this model is currently unavailable.
    """
    FREE = "free"
    OWNED = "owned"
    FOR_SALE = "for_sale"
    UNAVAILABLE = "unavailable"

    @property
    def is_usable(self) -> bool:
        """Whether the composited image may be shared at full fidelity"""
        return self in (Ownership.FREE, Ownership.OWNED)


class ActionKind(Enum):
    SHARE = "share"
    BUY = "buy"
    DISABLED = "disabled"


@dataclass(frozen=True)
class PurchaseAction:
    """Primary action offered for a model"""
    kind: ActionKind
    title: str
    enabled: bool
    offers_restore: bool


class OwnershipResolver:
    """Resolves ownership against the activation flags in the preferences"""

    def __init__(self, preferences: Preferences):
        self.preferences = preferences

    def resolve(self, model) -> Ownership:
        # Activation keys and receipts win over pricing data; a product
        # only decides between for-sale and unavailable.
        if model.product_identifier is None and model.activation_key is None:
            return Ownership.FREE
        elif model.activation_key is not None and self.preferences.get_bool(model.activation_key):
            return Ownership.OWNED
        elif model.receipt is not None:
            return Ownership.OWNED
        elif model.product is not None:
            return Ownership.FOR_SALE
        else:
            return Ownership.UNAVAILABLE

    def action_for(self, model) -> PurchaseAction:
        """
        Action offered to the user for a model

        Free and owned models are shared straight away. Models for sale
        are bought at their formatted price; unavailable ones are disabled.
        Both of the latter also offer restoring previous purchases.
        """
        ownership = self.resolve(model)
        if ownership.is_usable:
            return PurchaseAction(ActionKind.SHARE, "Share", enabled=True, offers_restore=False)
        elif ownership is Ownership.FOR_SALE:
            title = f"Buy - {format_price(model.product)}"
            return PurchaseAction(ActionKind.BUY, title, enabled=True, offers_restore=True)
        else:
            return PurchaseAction(ActionKind.DISABLED, "Unavailable", enabled=False, offers_restore=True)


# ==================================
# PRICE FORMATTING
# ==================================

_CURRENCY_SYMBOLS: Dict[str, str] = {
    'USD': '$',
    'CAD': 'CA$',
    'AUD': 'A$',
    'GBP': '£',
    'EUR': '€',
    'JPY': '¥',
    'CNY': 'CN¥',
    'INR': '₹',
    'BRL': 'R$',
}

_REGION_CURRENCIES: Dict[str, str] = {
    'US': 'USD',
    'CA': 'CAD',
    'AU': 'AUD',
    'GB': 'GBP',
    'JP': 'JPY',
    'CN': 'CNY',
    'IN': 'INR',
    'BR': 'BRL',
    'DE': 'EUR',
    'FR': 'EUR',
    'ES': 'EUR',
    'IT': 'EUR',
    'NL': 'EUR',
    'IE': 'EUR',
    'PT': 'EUR',
}

_ZERO_DECIMAL_CURRENCIES = {'JPY'}

# Languages writing the amount first: (group separator, decimal separator)
_SUFFIX_SYMBOL_SEPARATORS = {
    'de': ('.', ','),
    'es': ('.', ','),
    'it': ('.', ','),
    'nl': ('.', ','),
    'pt': ('.', ','),
    'fr': (' ', ','),
}


def parse_price_locale(price_locale: str) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Split a store price locale into (language, region, currency)

    Example:
        >>> parse_price_locale("en_GB@currency=GBP")
        ('en', 'GB', 'GBP')
    """
    identifier, _, keywords = price_locale.partition('@')
    parts = identifier.replace('-', '_').split('_')
    language = parts[0].lower() if parts and parts[0] else 'en'
    region = parts[1].upper() if len(parts) > 1 and parts[1] else None

    currency = None
    for keyword in keywords.split(';'):
        name, _, value = keyword.partition('=')
        if name.strip().lower() == 'currency' and value.strip():
            currency = value.strip().upper()

    if currency is None and region is not None:
        currency = _REGION_CURRENCIES.get(region)
    return language, region, currency


def format_price(product) -> str:
    """
    Localized price string for a store product

    Args:
        product: Object with `price` and `price_locale` attributes

    Example:
        >>> from types import SimpleNamespace
        >>> format_price(SimpleNamespace(price=Decimal("0.99"), price_locale="en_US@currency=USD"))
        '$0.99'
    """
    language, _, currency = parse_price_locale(product.price_locale)
    price = Decimal(product.price)

    places = 0 if currency in _ZERO_DECIMAL_CURRENCIES else 2
    amount = f"{price:,.{places}f}"
    symbol = _CURRENCY_SYMBOLS.get(currency or '', None)

    if language in _SUFFIX_SYMBOL_SEPARATORS:
        group, decimal = _SUFFIX_SYMBOL_SEPARATORS[language]
        whole, _, fraction = amount.partition('.')
        amount = whole.replace(',', group) + (decimal + fraction if fraction else '')
        return f"{amount} {symbol or currency or ''}".rstrip()

    if symbol is None:
        return f"{currency} {amount}" if currency else amount
    return f"{symbol}{amount}"
