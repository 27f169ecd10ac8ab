"""Validators for submitted URLs."""

from .url_validator import validate_url

__all__ = ["validate_url"]
