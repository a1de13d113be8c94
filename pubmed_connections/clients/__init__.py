"""API client modules for the PubMed Connections MCP Server."""

from .base import BaseClient
from .eutilities import EUtilitiesClient

__all__ = [
    "BaseClient",
    "EUtilitiesClient",
]
