"""
Clients for the external services used by enrichment steps.
"""

from .currency_client import CurrencyClient
from .deepl_client import DeepLClient
from .huggingface_client import HuggingFaceClient
from .openai_client import OpenAIClient

__all__ = [
    'CurrencyClient',
    'DeepLClient',
    'HuggingFaceClient',
    'OpenAIClient',
]
