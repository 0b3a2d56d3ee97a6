"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from btcount.domain.wallet import WalletService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_wallet_service(request: Request) -> WalletService:
    """Provide the wallet service built during application startup"""
    return request.app.state.wallet_service
