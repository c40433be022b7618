from fastapi import APIRouter, Depends

from invoicedesk.dependencies.services import get_email_domain_service
from invoicedesk.schemas.email import (
    DomainListResponse,
    DomainRemovalResponse,
    DomainRequest,
    DomainVerificationResponse,
)
from invoicedesk.services import EmailDomainService

router = APIRouter()

# Domain operations report provider failures in the response body
# (success=False) rather than as HTTP errors.


@router.get("", response_model=DomainListResponse)
async def list_domains(
    service: EmailDomainService = Depends(get_email_domain_service),
):
    return await service.list()


@router.post("/add", response_model=DomainVerificationResponse)
async def add_domain(
    req: DomainRequest,
    service: EmailDomainService = Depends(get_email_domain_service),
):
    return await service.add(req.domain)


@router.post("/verify", response_model=DomainVerificationResponse)
async def verify_domain(
    req: DomainRequest,
    service: EmailDomainService = Depends(get_email_domain_service),
):
    return await service.verify(req.domain)


@router.post("/status", response_model=DomainVerificationResponse)
async def domain_status(
    req: DomainRequest,
    service: EmailDomainService = Depends(get_email_domain_service),
):
    return await service.status(req.domain)


@router.post("/remove", response_model=DomainRemovalResponse)
async def remove_domain(
    req: DomainRequest,
    service: EmailDomainService = Depends(get_email_domain_service),
):
    return await service.remove(req.domain)
