"""Strongbox API client and command-line interface."""

from .client import ClientError, StrongboxClient

__all__ = ["ClientError", "StrongboxClient"]
