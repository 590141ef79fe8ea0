"""
Admin API for a wedding's custom domains.

Every route requires the signed-in user to own the request's wedding (resolved
by the tenant middleware or echoed back by the client).
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from .core.db import get_session
from .core.responses import ErrorCodes, error_response, success_response
from .domains import (
    DomainConflictError,
    DomainError,
    DomainNotFoundError,
    InvalidDomainError,
    add_wedding_domain,
    get_wedding_domains,
    remove_wedding_domain,
    verify_domain,
)
from .tenancy.context import WeddingAccess, require_wedding_owner


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/domains", tags=["admin-domains"])


class AddDomainRequest(BaseModel):
    domain: str = Field(..., min_length=3, max_length=253)
    is_primary: bool = False


def _domain_http_error(exc: DomainError) -> HTTPException:
    if isinstance(exc, InvalidDomainError):
        code, status_code = ErrorCodes.INVALID_DOMAIN, status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, DomainConflictError):
        code, status_code = ErrorCodes.DOMAIN_ALREADY_EXISTS, status.HTTP_409_CONFLICT
    elif isinstance(exc, DomainNotFoundError):
        code, status_code = ErrorCodes.DOMAIN_NOT_FOUND, status.HTTP_404_NOT_FOUND
    else:
        code, status_code = ErrorCodes.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR
    details = {"domain": exc.domain} if exc.domain else None
    return HTTPException(status_code=status_code, detail=error_response(code, exc.message, details))


@router.get("")
async def list_domains(
    access: WeddingAccess = Depends(require_wedding_owner),
    session: AsyncSession = Depends(get_session),
):
    try:
        domains = await get_wedding_domains(session, access.wedding_id)
    except DomainError as e:
        raise _domain_http_error(e) from e
    return success_response([asdict(d) for d in domains])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_domain(
    payload: AddDomainRequest,
    access: WeddingAccess = Depends(require_wedding_owner),
    session: AsyncSession = Depends(get_session),
):
    try:
        info = await add_wedding_domain(
            session, access.wedding_id, payload.domain, is_primary=payload.is_primary
        )
    except DomainError as e:
        raise _domain_http_error(e) from e
    return success_response(asdict(info))


@router.post("/{domain_id}/verify")
async def verify_wedding_domain(
    domain_id: str,
    access: WeddingAccess = Depends(require_wedding_owner),
    session: AsyncSession = Depends(get_session),
):
    try:
        info = await verify_domain(session, access.wedding_id, domain_id)
    except DomainError as e:
        raise _domain_http_error(e) from e
    return success_response(asdict(info))


@router.delete("/{domain_id}")
async def delete_domain(
    domain_id: str,
    access: WeddingAccess = Depends(require_wedding_owner),
    session: AsyncSession = Depends(get_session),
):
    try:
        await remove_wedding_domain(session, access.wedding_id, domain_id)
    except DomainError as e:
        raise _domain_http_error(e) from e
    logger.info(f"User {access.user_id} removed domain {domain_id} from wedding {access.wedding_id}")
    return success_response({"id": domain_id, "deleted": True})
