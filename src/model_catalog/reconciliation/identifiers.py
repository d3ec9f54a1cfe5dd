"""
Identifier normalization.

Providers namespace the same model differently ("openai/gpt-4o",
"gpt-4o", "GPT-4o"). These helpers derive the canonical id used in the
catalog and the comparison key used to decide that two ids name the same
model.
"""

import re
from typing import Callable


NAMESPACE_SEPARATOR = '/'

# A pluggable predicate deciding whether a raw id should be dropped.
IdFilter = Callable[[str], bool]

_NON_ALPHANUMERIC = re.compile(r'[^a-z0-9]')

# Date stamps anchored to "@" or "-". The two-digit patterns cover
# truncated month/year stamps ("-10-23", "-2406") through the 2030s.
_TRANSIENT_PATTERNS = (
    re.compile(r'[@-](\d{8})(.|$)'),  # -20231031, @20231031
    re.compile(r'[@-](\d{4}-\d{2}-\d{2})(.|$)'),  # -2023-10-31
    re.compile(r'[@-][10][0-9]-[23]\d'),  # -10-23, @01-31
    re.compile(r'[@-][23]\d[10][0-9]'),  # -2310, @3101
)


def canonical_id(raw_id: str) -> str:
    """
    Return the last path segment of a namespaced model id.

    "namespace/model" -> "model"; "model" -> "model".
    """
    return raw_id.split(NAMESPACE_SEPARATOR)[-1]


def remove_namespace(raw_id: str) -> str:
    """
    Remove exactly one leading namespace.

    "provider/namespace/model" -> "namespace/model"; "model" -> "model".
    """
    parts = raw_id.split(NAMESPACE_SEPARATOR)
    if len(parts) <= 1:
        return raw_id
    return NAMESPACE_SEPARATOR.join(parts[1:])


def comparable_key(model_id: str) -> str:
    """Lowercase the id and drop everything that is not a-z or 0-9."""
    return _NON_ALPHANUMERIC.sub('', model_id.lower())


def is_likely_versioned_or_transient(raw_id: str) -> bool:
    """
    Flag ids that pin a dated snapshot or a moving preview/latest alias.

    This is a heuristic: "gpt-4-2310" style ids are caught, but so is any
    id that happens to contain a matching digit run. Changing the patterns
    changes which models ever reach the catalog.
    """
    if any(pattern.search(raw_id) for pattern in _TRANSIENT_PATTERNS):
        return True
    lowered = raw_id.lower()
    return 'preview' in lowered or '-latest' in lowered
