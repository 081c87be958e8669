"""Authentication module for agproxy."""

from .api_key import ApiKeyValidator

__all__ = ["ApiKeyValidator"]
