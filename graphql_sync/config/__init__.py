"""
Config module - Default settings for the GraphQL sync.
"""

from .settings import DEFAULT_SETTINGS, RUN_NAME

__all__ = [
    'DEFAULT_SETTINGS',
    'RUN_NAME',
]
