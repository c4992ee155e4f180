"""
patientql
GraphQL API over a single PostgreSQL ``patients`` table
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
