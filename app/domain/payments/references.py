"""Payment reference helpers shared by order creation and webhook matching"""

from typing import Optional

# Prefixes added when a reference is sent to Mercado Pago
REFERENCE_PREFIXES = ("order_", "payment_", "subscription_")

ORDER_STATUS_BY_PAYMENT_STATUS = {
    "approved": "paid",
    "rejected": "cancelled",
    "cancelled": "cancelled",
    "expired": "expired",
}


def normalize_reference(value: Optional[object]) -> Optional[str]:
    """
    Canonical form of an external reference: trimmed, lowercase, one known prefix removed.

    "subscription_ABC123", " ABC123 " and "abc123" all normalize to "abc123".
    """
    if value is None:
        return None
    reference = str(value).strip().lower()
    for prefix in REFERENCE_PREFIXES:
        if reference.startswith(prefix):
            reference = reference[len(prefix):]
            break
    return reference or None


def map_payment_status(provider_status: Optional[str]) -> str:
    """Mercado Pago payment status -> local order status (unknown statuses stay pending)"""
    return ORDER_STATUS_BY_PAYMENT_STATUS.get(provider_status or "", "pending")
