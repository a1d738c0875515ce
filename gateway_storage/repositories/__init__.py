"""
Repository layer - Data access for gateway records.

Hides the table layout and driver errors from the calling code.
"""

from .gateway_repository import GatewayRepository

__all__ = ["GatewayRepository"]
