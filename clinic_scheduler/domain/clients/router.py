"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ..payments.schemas import PaymentResponse
from .schemas import ClientCreate, ClientResponse, ClientUpdate
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    location: Optional[str] = Query(None),
    service: ClientService = Depends(get_client_service),
):
    """Get all clients ordered by name, optionally for one location"""
    return [ClientResponse.from_model(c) for c in service.get_clients(location)]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, service: ClientService = Depends(get_client_service)):
    """Get a specific client including their remaining session balance"""
    return ClientResponse.from_model(service.get_client(client_id))


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(data: ClientCreate, service: ClientService = Depends(get_client_service)):
    """Create a new client"""
    return ClientResponse.from_model(service.create_client(data))


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    service: ClientService = Depends(get_client_service),
):
    """Update a client's contact details"""
    return ClientResponse.from_model(service.update_client(client_id, data))


@router.get("/{client_id}/payments", response_model=list[PaymentResponse])
async def get_client_payments(client_id: int, service: ClientService = Depends(get_client_service)):
    """Payment history for a client"""
    return [PaymentResponse.from_model(p) for p in service.get_payment_history(client_id)]
