"""
Datastore lookups used by tenant resolution and wedding access checks.

Every method is a single SELECT and returns the wedding id as a string (the
form it travels in over HTTP) or None.

Usage:
    async with open_wedding_lookup() as lookup:
        wedding_id = await lookup.find_by_subdomain("acme")
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.db import AsyncSessionLocal
from ..models import Wedding, WeddingDomain, WeddingOwner


def parse_uuid(value: object) -> Optional[uuid.UUID]:
    """Parse an externally supplied id; None when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class WeddingLookup:
    """Read-only tenant queries bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_verified_domain(self, candidates: Sequence[str]) -> Optional[str]:
        """
        Wedding id for the first verified custom domain among ``candidates``.

        Candidates are ordered by preference; when both ``couple.com`` and
        ``www.couple.com`` are registered the earlier candidate wins.
        """
        if not candidates:
            return None
        result = await self.session.execute(
            select(WeddingDomain.domain, WeddingDomain.wedding_id).where(
                WeddingDomain.domain.in_(list(candidates)),
                WeddingDomain.is_verified.is_(True),
            )
        )
        by_domain = {domain: wedding_id for domain, wedding_id in result.all()}
        for candidate in candidates:
            if candidate in by_domain:
                return str(by_domain[candidate])
        return None

    async def find_by_subdomain(self, subdomain: str) -> Optional[str]:
        result = await self.session.execute(
            select(Wedding.id).where(func.lower(Wedding.subdomain) == subdomain.lower())
        )
        wedding_id = result.scalar_one_or_none()
        return str(wedding_id) if wedding_id else None

    async def find_by_slug(self, slug: str) -> Optional[str]:
        result = await self.session.execute(select(Wedding.id).where(Wedding.slug == slug))
        wedding_id = result.scalar_one_or_none()
        return str(wedding_id) if wedding_id else None

    async def is_owner(self, wedding_id: str, customer_id: str) -> bool:
        return await verify_wedding_ownership(self.session, customer_id, wedding_id)


# ────────────────────────────────────────────────────────────────
# Ownership
# ────────────────────────────────────────────────────────────────

async def verify_wedding_ownership(
    session: AsyncSession,
    customer_id: str,
    wedding_id: str,
) -> bool:
    """True if the customer owns the wedding."""
    parsed = parse_uuid(wedding_id)
    if parsed is None or not customer_id:
        return False
    result = await session.execute(
        select(WeddingOwner.wedding_id).where(
            WeddingOwner.wedding_id == parsed,
            WeddingOwner.customer_id == customer_id,
        )
    )
    return result.first() is not None


async def get_user_weddings(session: AsyncSession, customer_id: str) -> list[str]:
    """Ids of every wedding the customer owns."""
    result = await session.execute(
        select(WeddingOwner.wedding_id)
        .where(WeddingOwner.customer_id == customer_id)
        .order_by(WeddingOwner.created_at)
    )
    return [str(wedding_id) for wedding_id in result.scalars().all()]


@asynccontextmanager
async def open_wedding_lookup() -> AsyncIterator[WeddingLookup]:
    """Open a session from the application pool and wrap it in a lookup."""
    async with AsyncSessionLocal() as session:
        yield WeddingLookup(session)
