"""Request-layer facade for validation and batch lifecycle calls."""

from tollgate.gateway.service import GatewayResponse, ValidationGateway, status_for

__all__ = ["GatewayResponse", "ValidationGateway", "status_for"]
