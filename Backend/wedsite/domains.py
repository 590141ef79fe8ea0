"""
Custom domain management.

A couple connects a domain they own (``ourwedding.com``) to their wedding.
Rows start unverified; the tenant resolver only honours verified ones.
"""

import logging
import re
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import WeddingDomain
from .tenancy.hostnames import is_ipv4, strip_port
from .tenancy.queries import parse_uuid


logger = logging.getLogger(__name__)

HOSTNAME_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")
VERIFICATION_TOKEN_PREFIX = "wedding-verify-"


class DomainError(Exception):
    """Base class for domain management failures."""

    def __init__(self, message: str, domain: Optional[str] = None):
        self.message = message
        self.domain = domain
        super().__init__(message)


class InvalidDomainError(DomainError):
    pass


class DomainConflictError(DomainError):
    pass


class DomainNotFoundError(DomainError):
    pass


@dataclass(frozen=True)
class DomainInfo:
    id: str
    domain: str
    wedding_id: str
    is_primary: bool
    is_verified: bool
    verification_token: str
    verified_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: WeddingDomain) -> "DomainInfo":
        return cls(
            id=str(row.id),
            domain=row.domain,
            wedding_id=str(row.wedding_id),
            is_primary=row.is_primary,
            is_verified=row.is_verified,
            verification_token=row.verification_token,
            verified_at=row.verified_at,
        )


def normalize_domain(value: str) -> str:
    """
    Canonical form of a user-entered domain.

    ``https://OurWedding.com:443/rsvp`` -> ``ourwedding.com``

    Raises:
        InvalidDomainError: Not a registrable hostname
    """
    domain = (value or "").strip().lower()
    domain = re.sub(r"^[a-z][a-z0-9+.-]*://", "", domain)
    domain = domain.split("/", 1)[0]
    domain = strip_port(domain)

    labels = domain.split(".")
    if (
        len(domain) > 253
        or len(labels) < 2
        or is_ipv4(domain)
        or not all(HOSTNAME_LABEL.match(label) for label in labels)
    ):
        raise InvalidDomainError(f"Invalid domain: {value!r}", domain=value)
    return domain


def generate_verification_token() -> str:
    return f"{VERIFICATION_TOKEN_PREFIX}{secrets.token_hex(12)}"


def _require_wedding_uuid(wedding_id: str) -> uuid.UUID:
    parsed = parse_uuid(wedding_id)
    if parsed is None:
        raise DomainNotFoundError(f"Unknown wedding: {wedding_id}")
    return parsed


async def _get_owned_domain(
    session: AsyncSession,
    wedding_id: str,
    domain_id: str,
) -> WeddingDomain:
    wedding_uuid = _require_wedding_uuid(wedding_id)
    domain_uuid = parse_uuid(domain_id)
    if domain_uuid is None:
        raise DomainNotFoundError(f"Domain not found: {domain_id}")

    result = await session.execute(
        select(WeddingDomain).where(
            WeddingDomain.id == domain_uuid,
            WeddingDomain.wedding_id == wedding_uuid,
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise DomainNotFoundError(f"Domain not found: {domain_id}")
    return row


async def get_wedding_domains(session: AsyncSession, wedding_id: str) -> list[DomainInfo]:
    """All domains for a wedding, primary first."""
    wedding_uuid = _require_wedding_uuid(wedding_id)
    result = await session.execute(
        select(WeddingDomain)
        .where(WeddingDomain.wedding_id == wedding_uuid)
        .order_by(WeddingDomain.is_primary.desc(), WeddingDomain.domain)
    )
    return [DomainInfo.from_row(row) for row in result.scalars().all()]


async def add_wedding_domain(
    session: AsyncSession,
    wedding_id: str,
    domain: str,
    is_primary: bool = False,
) -> DomainInfo:
    """
    Connect a domain to a wedding. The new row is unverified.

    Raises:
        InvalidDomainError: Malformed domain
        DomainConflictError: Domain already connected to a wedding
    """
    wedding_uuid = _require_wedding_uuid(wedding_id)
    normalized = normalize_domain(domain)

    existing = await session.execute(
        select(WeddingDomain.id).where(WeddingDomain.domain == normalized)
    )
    if existing.first() is not None:
        raise DomainConflictError(f"Domain already in use: {normalized}", domain=normalized)

    if is_primary:
        await session.execute(
            update(WeddingDomain)
            .where(
                WeddingDomain.wedding_id == wedding_uuid,
                WeddingDomain.is_primary.is_(True),
            )
            .values(is_primary=False)
        )

    row = WeddingDomain(
        id=uuid.uuid4(),
        wedding_id=wedding_uuid,
        domain=normalized,
        is_primary=is_primary,
        is_verified=False,
        verification_token=generate_verification_token(),
    )
    session.add(row)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise DomainConflictError(f"Domain already in use: {normalized}", domain=normalized) from e

    await session.refresh(row)
    logger.info(f"Added domain {normalized} to wedding {wedding_id} (primary={is_primary})")
    return DomainInfo.from_row(row)


async def verify_domain(session: AsyncSession, wedding_id: str, domain_id: str) -> DomainInfo:
    """
    Mark a wedding's domain as verified.

    Ownership is confirmed by the couple out of band; no DNS lookup is made.

    Raises:
        DomainNotFoundError: No such domain on this wedding
    """
    row = await _get_owned_domain(session, wedding_id, domain_id)
    if not row.is_verified:
        row.is_verified = True
        row.verified_at = datetime.now(timezone.utc)
        await session.commit()
        await session.refresh(row)
        logger.info(f"Verified domain {row.domain} for wedding {wedding_id}")
    return DomainInfo.from_row(row)


async def remove_wedding_domain(session: AsyncSession, wedding_id: str, domain_id: str) -> None:
    """
    Disconnect a domain from a wedding.

    Raises:
        DomainNotFoundError: No such domain on this wedding
    """
    row = await _get_owned_domain(session, wedding_id, domain_id)
    await session.delete(row)
    await session.commit()
    logger.info(f"Removed domain {row.domain} from wedding {wedding_id}")
