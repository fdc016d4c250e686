"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from minibus_ledger.infrastructure.configuration import ConfigurationProvider
from minibus_ledger.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_configuration_provider(db: Session = Depends(get_db)) -> ConfigurationProvider:
    """Provide a rate resolver bound to the request's session"""
    return ConfigurationProvider(db)
