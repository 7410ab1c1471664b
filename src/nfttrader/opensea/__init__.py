"""OpenSea API access."""

from .client import OpenSeaClient

__all__ = ["OpenSeaClient"]
