"""Ledger domain - transactional session-ledger plumbing shared by appointments and payments"""

from .gateway import LedgerGateway

__all__ = ["LedgerGateway", "get_gateway"]


def get_gateway() -> LedgerGateway:
    """Dependency injection for LedgerGateway"""
    from ...database import SessionLocal

    return LedgerGateway(SessionLocal)
