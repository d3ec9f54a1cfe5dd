"""
Model deduplication across sources.

Groups source records that describe the same logical model (same
comparable key) and folds each group into one CanonicalModel.

Precedence is first-seen: the first record of a group is the anchor, so
the order in which sources are fetched decides most ties. Exceptions:
- capability flags: False from any record wins
- knowledge cutoff: the earliest known date wins
- limits and prices: merged per provider (see merger.py)
"""

from dataclasses import dataclass
from functools import reduce

from ..models.model_info import CanonicalModel, sort_aliases
from .identifiers import comparable_key
from .merger import merge_offerings


FREE_SUFFIX = ':free'

TRI_STATE_FLAGS = ('open_weights', 'reasoning', 'tool_calling')


@dataclass(frozen=True)
class _SourceRecord:
    """A source record with the free-tier suffix resolved."""

    model: CanonicalModel
    is_free: bool


def _resolve_free_tier(model: CanonicalModel) -> _SourceRecord:
    if not model.id.lower().endswith(FREE_SUFFIX):
        return _SourceRecord(model=model.model_copy(deep=True), is_free=False)

    stripped = model.id[: -len(FREE_SUFFIX)]
    resolved = model.model_copy(
        deep=True,
        update={
            'id': stripped,
            'aliases': sort_aliases([*model.aliases, stripped]),
        },
    )
    return _SourceRecord(model=resolved, is_free=True)


def _as_anchor(record: _SourceRecord) -> CanonicalModel:
    """First record of a group; free-tier offerings never land in providers."""
    if not record.is_free:
        return record.model
    model = record.model
    return model.model_copy(
        update={
            'providers': [],
            'free_providers': merge_offerings([*model.free_providers, *model.providers]),
        }
    )


def merge_flag(existing: bool | None, incoming: bool | None) -> bool | None:
    """False is sticky; otherwise the first known value wins."""
    if existing is False or incoming is False:
        return False
    if existing is None:
        return incoming
    return existing


def _union(existing: list, incoming: list) -> list:
    return existing + [value for value in incoming if value not in existing]


def merge_models(existing: CanonicalModel, record: _SourceRecord) -> CanonicalModel:
    """
    Merge one source record into the anchor of its group.

    Returns a new CanonicalModel; the anchor is not modified.
    """
    incoming = record.model
    update: dict = {
        'aliases': sort_aliases([*existing.aliases, *incoming.aliases]),
        'description': existing.description or incoming.description,
        'input': _union(existing.input, incoming.input),
        'output': _union(existing.output, incoming.output),
        'parameters': _union(existing.parameters, incoming.parameters),
        'default_parameters': {**incoming.default_parameters, **existing.default_parameters},
    }

    if record.is_free:
        update['free_providers'] = merge_offerings(
            [*existing.free_providers, *incoming.providers, *incoming.free_providers]
        )
    else:
        update['providers'] = merge_offerings([*existing.providers, *incoming.providers])
        if incoming.free_providers:
            update['free_providers'] = merge_offerings(
                [*existing.free_providers, *incoming.free_providers]
            )

    for flag in TRI_STATE_FLAGS:
        update[flag] = merge_flag(getattr(existing, flag), getattr(incoming, flag))

    if existing.knowledge is None or (
        incoming.knowledge is not None and incoming.knowledge < existing.knowledge
    ):
        update['knowledge'] = incoming.knowledge

    return existing.model_copy(update=update)


def _fold(
    groups: dict[str, CanonicalModel],
    record: _SourceRecord,
) -> dict[str, CanonicalModel]:
    key = comparable_key(record.model.id)
    anchor = groups.get(key)
    merged = _as_anchor(record) if anchor is None else merge_models(anchor, record)
    return {**groups, key: merged}


def deduplicate(models: list[CanonicalModel]) -> list[CanonicalModel]:
    """
    Group source records into canonical models.

    Args:
        models: Concatenated records from all sources, in source order

    Returns:
        One CanonicalModel per comparable key, in order of first appearance.
        The input records are not modified.
    """
    records = [_resolve_free_tier(model) for model in models]
    return list(reduce(_fold, records, {}).values())
