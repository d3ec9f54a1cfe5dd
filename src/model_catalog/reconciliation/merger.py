"""
Provider offering merger.

Folds a list of offerings into a list where each provider appears once per
currency. Two offerings describe the same provider when:
- their price currencies are equal (both missing counts as equal), and
- their provider ids are equal, or one provider name (longer than five
  characters) is a prefix of the other.

When merging, limits take the minimum known value and prices the maximum
known value, so a merged offering never overstates capability or
understates cost. The fold is stable: the earlier offering is the anchor
for ties.
"""

from decimal import Decimal
from functools import reduce

from ..models.model_info import ProviderOffering, ProviderPrice


# Provider names this short are too generic for prefix matching.
MIN_PREFIX_NAME_LENGTH = 5


def _names_share_prefix(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return (len(a) > MIN_PREFIX_NAME_LENGTH and b.startswith(a)) or (
        len(b) > MIN_PREFIX_NAME_LENGTH and a.startswith(b)
    )


def is_same_provider(existing: ProviderOffering, incoming: ProviderOffering) -> bool:
    """Decide whether two offerings describe the same provider."""
    if existing.currency != incoming.currency:
        return False
    return existing.provider_id == incoming.provider_id or _names_share_prefix(
        existing.provider_name, incoming.provider_name
    )


def _min_known(existing: int | None, incoming: int | None) -> int | None:
    if incoming is None:
        return existing
    if existing is None:
        return incoming
    return min(existing, incoming)


def _max_price(existing: str | None, incoming: str | None) -> str | None:
    if incoming is None:
        return existing
    if existing is None:
        return incoming
    return incoming if Decimal(incoming) > Decimal(existing) else existing


def _merge_price(
    existing: ProviderPrice | None,
    incoming: ProviderPrice | None,
) -> ProviderPrice | None:
    if incoming is None:
        return existing
    if existing is None:
        return incoming.model_copy()
    return ProviderPrice(
        currency=existing.currency,
        input=_max_price(existing.input, incoming.input),
        output=_max_price(existing.output, incoming.output),
    )


def merge_offering_pair(
    existing: ProviderOffering,
    incoming: ProviderOffering,
) -> ProviderOffering:
    """
    Merge two offerings already known to describe the same provider.

    Returns a new offering; neither argument is modified.
    """
    provider_id = existing.provider_id
    if len(incoming.provider_id) < len(provider_id):
        provider_id = incoming.provider_id

    provider_name = existing.provider_name
    if incoming.provider_name and (
        not provider_name or len(incoming.provider_name) > len(provider_name)
    ):
        provider_name = incoming.provider_name

    return ProviderOffering(
        provider_id=provider_id,
        provider_name=provider_name,
        context_length=_min_known(existing.context_length, incoming.context_length),
        input_limit=_min_known(existing.input_limit, incoming.input_limit),
        output_limit=_min_known(existing.output_limit, incoming.output_limit),
        price=_merge_price(existing.price, incoming.price),
    )


def _fold(
    merged: tuple[ProviderOffering, ...],
    incoming: ProviderOffering,
) -> tuple[ProviderOffering, ...]:
    for index, existing in enumerate(merged):
        if is_same_provider(existing, incoming):
            return (
                *merged[:index],
                merge_offering_pair(existing, incoming),
                *merged[index + 1:],
            )
    return (*merged, incoming)


def merge_offerings(offerings: list[ProviderOffering]) -> list[ProviderOffering]:
    """
    Deduplicate offerings, merging those that describe the same provider.

    Args:
        offerings: Offerings in source-fetch order

    Returns:
        New list with at most one offering per provider and currency
    """
    return list(reduce(_fold, offerings, ()))
