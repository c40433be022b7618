from typing import Optional

from fastapi import APIRouter, Depends, Response

from invoicedesk.dependencies.services import get_client_service
from invoicedesk.routers.errors import raise_http_error
from invoicedesk.schemas.client import (
    ClientCreateRequest,
    ClientListResponse,
    ClientResponse,
    ClientUpdateRequest,
)
from invoicedesk.services import ClientService
from invoicedesk.services.exceptions import ServiceError

router = APIRouter()


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    req: ClientCreateRequest,
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.create(req)
    except ServiceError as exc:
        raise_http_error(exc)


@router.get("", response_model=ClientListResponse)
async def list_clients(
    search: Optional[str] = None,
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.list(search)
    except ServiceError as exc:
        raise_http_error(exc)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.get(client_id)
    except ServiceError as exc:
        raise_http_error(exc)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    req: ClientUpdateRequest,
    service: ClientService = Depends(get_client_service),
):
    try:
        return await service.update(client_id, req)
    except ServiceError as exc:
        raise_http_error(exc)


@router.delete("/{client_id}", status_code=204)
async def delete_client(
    client_id: str,
    service: ClientService = Depends(get_client_service),
):
    try:
        await service.delete(client_id)
    except ServiceError as exc:
        raise_http_error(exc)
    return Response(status_code=204)
