"""Vendor gateway adapters."""

from app.adapters.base import BaseGatewayClient, GatewayFactory
from app.adapters.periskope import PeriskopeClient, build_periskope_client

__all__ = [
    "BaseGatewayClient",
    "GatewayFactory",
    "PeriskopeClient",
    "build_periskope_client",
]
