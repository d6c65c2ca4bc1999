"""
productive-sync - Productive.io to Supabase mirror
"""

__version__ = "1.0.0"

from .core.productive_client import ProductiveClient

__all__ = [
    "ProductiveClient",
]
