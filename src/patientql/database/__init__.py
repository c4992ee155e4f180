"""
Database module for patientql
"""

from .connection import Database, to_async_url

__all__ = ["Database", "to_async_url"]
