"""Payment code derivation."""

from tripsplit.payments.promptpay import (
    CLOSING_TAG,
    PaymentCodeKind,
    PaymentRequest,
    build_promptpay_payload,
    format_amount,
    normalize_phone,
    payment_request_for,
    to_payment_target,
)

__all__ = [
    "CLOSING_TAG",
    "PaymentCodeKind",
    "PaymentRequest",
    "build_promptpay_payload",
    "format_amount",
    "normalize_phone",
    "payment_request_for",
    "to_payment_target",
]
