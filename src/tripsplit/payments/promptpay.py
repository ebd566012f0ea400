"""
Payment Code Derivation

Builds the text behind a "pay me" QR code for a member. A friend who
saved their own payment QR image gets that image; otherwise the code is
derived from their phone number in the PromptPay layout:

    00 02 01                      payload format indicator
    01 02 11                      static QR
    29 LL 00 16 <AID>             merchant account: application id
          01 LL 00<target>        ...and the phone target
    53 03 764                     currency
    54 LL <amount>                amount, two decimals
    58 02 TH                      country
    6304                          closing tag

Every field is tag + two-digit length + value. No CRC is appended, so
banking apps may refuse the code. It is a visual aid, not a certified
payment instrument.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from tripsplit.config import PaymentSettings, get_settings
from tripsplit.models.entities import Friend, digits_only


CLOSING_TAG = "6304"

_CENT = Decimal("0.01")


class PaymentCodeKind(str, Enum):
    """Where a payment code came from."""
    CUSTOM_QR = "custom_qr"   # the friend's own QR image
    PROMPTPAY = "promptpay"   # derived from the phone number


class PaymentRequest(BaseModel):
    """What to show a debtor so they can pay one friend."""

    friend_id: str
    amount: Decimal = Field(..., ge=0)
    kind: PaymentCodeKind
    payload: str = Field(
        ...,
        description="QR payload text, or the image payload for CUSTOM_QR"
    )


def normalize_phone(raw: str) -> str:
    """Digits only."""
    return digits_only(raw)


def to_payment_target(phone: str, settings: Optional[PaymentSettings] = None) -> str:
    """
    Country-code-prefixed digits for a phone number.

    A leading trunk prefix is replaced by the country code
    ("0812345678" -> "66812345678"); anything else is assumed to be
    prefixed already.
    """
    settings = settings or get_settings().payment
    digits = normalize_phone(phone)
    if settings.trunk_prefix and digits.startswith(settings.trunk_prefix):
        return settings.country_code + digits[len(settings.trunk_prefix):]
    return digits


def _field(tag: str, value: str) -> str:
    if len(value) > 99:
        raise ValueError(f"Field {tag} is too long ({len(value)} characters)")
    return f"{tag}{len(value):02d}{value}"


def format_amount(amount: Decimal) -> str:
    """Amount with exactly two decimals, e.g. 150 -> '150.00'."""
    return str(Decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP))


def build_promptpay_payload(
    target: str,
    amount: Decimal,
    settings: Optional[PaymentSettings] = None,
) -> str:
    """
    PromptPay-style payload for a phone target and amount (no CRC).

    Args:
        target: Country-code-prefixed phone digits (see to_payment_target)
        amount: Amount to request
    """
    settings = settings or get_settings().payment
    merchant_account = _field("00", settings.aid) + _field("01", "00" + target)
    return (
        _field("00", "01")
        + _field("01", "11")
        + _field("29", merchant_account)
        + _field("53", settings.currency_code)
        + _field("54", format_amount(amount))
        + _field("58", settings.country)
        + CLOSING_TAG
    )


def payment_request_for(
    friend: Friend,
    amount: Decimal,
    settings: Optional[PaymentSettings] = None,
) -> Optional[PaymentRequest]:
    """
    Payment code for paying a friend.

    Returns:
        The friend's own QR image when they saved one, otherwise a
        PromptPay payload from their phone, otherwise None.
    """
    if friend.qr_code:
        return PaymentRequest(
            friend_id=friend.id,
            amount=amount,
            kind=PaymentCodeKind.CUSTOM_QR,
            payload=friend.qr_code,
        )

    if friend.phone:
        target = to_payment_target(friend.phone, settings)
        return PaymentRequest(
            friend_id=friend.id,
            amount=amount,
            kind=PaymentCodeKind.PROMPTPAY,
            payload=build_promptpay_payload(target, amount, settings),
        )

    return None
