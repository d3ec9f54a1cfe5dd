"""
LLM prompts for the model catalog.
"""

from .describe_model import (
    DESCRIBE_MODEL_PROMPT,
    MAX_DESCRIPTION_CHARS,
    NO_SUMMARY_MARKER,
    build_description_prompt,
)

__all__ = [
    'DESCRIBE_MODEL_PROMPT',
    'MAX_DESCRIPTION_CHARS',
    'NO_SUMMARY_MARKER',
    'build_description_prompt',
]
