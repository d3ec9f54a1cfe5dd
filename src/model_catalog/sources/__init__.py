"""
Source adapters.

SOURCE_REGISTRY maps the names accepted by the SOURCES setting to their
adapters. Sources are fetched in the configured order, which decides
most merge ties downstream.
"""

from .base import ModelSource, fetch_json
from .models_dev import fetch_models_dev_models
from .openrouter import fetch_openrouter_models

SOURCE_REGISTRY: dict[str, ModelSource] = {
    'models_dev': fetch_models_dev_models,
    'openrouter': fetch_openrouter_models,
}

__all__ = [
    'SOURCE_REGISTRY',
    'ModelSource',
    'fetch_json',
    'fetch_models_dev_models',
    'fetch_openrouter_models',
]
