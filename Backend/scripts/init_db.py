#!/usr/bin/env python3
"""
Initialize the database schema from the SQLAlchemy models.

Safe to run multiple times (idempotent). With ``--seed`` it also creates a
demo wedding reachable locally at http://demo.lvh.me:8000/ (or
http://localhost:8000/?subdomain=demo) for multi-tenant testing without DNS.

Usage:
    export DATABASE_URL="postgresql+asyncpg://localhost:5432/wedsite"
    python3 Backend/scripts/init_db.py --seed
"""
import argparse
import asyncio
import logging
import sys

from sqlalchemy import select

from wedsite.core.config import get_settings
from wedsite.core.db import AsyncSessionLocal, Base, engine
from wedsite.models import Customer, Wedding, WeddingOwner

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("init_db")

DEMO_SUBDOMAIN = "demo"
DEMO_SLUG = "demo-wedding"
DEMO_OWNER_ID = "demo-owner"


async def create_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema ready: weddings, wedding_domains, customers, wedding_owners")


async def seed_demo_wedding() -> None:
    async with AsyncSessionLocal() as session:
        existing = await session.scalar(select(Wedding).where(Wedding.slug == DEMO_SLUG))
        if existing:
            logger.info(f"Demo wedding already present: {existing.id}")
            return

        wedding = Wedding(
            slug=DEMO_SLUG,
            subdomain=DEMO_SUBDOMAIN,
            couple_display_name="Jane & Sam",
        )
        session.add(wedding)
        if not await session.get(Customer, DEMO_OWNER_ID):
            session.add(Customer(id=DEMO_OWNER_ID, email="demo@example.com"))
        await session.flush()
        session.add(WeddingOwner(wedding_id=wedding.id, customer_id=DEMO_OWNER_ID))
        await session.commit()
        logger.info(f"Seeded demo wedding {wedding.id} (subdomain={DEMO_SUBDOMAIN}, slug={DEMO_SLUG})")


async def main(seed: bool) -> int:
    logger.info(f"Database: {get_settings().database_url}")
    try:
        await create_schema()
        if seed:
            await seed_demo_wedding()
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        return 1
    finally:
        await engine.dispose()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and optionally seed a demo wedding")
    parser.add_argument("--seed", action="store_true", help="Create the demo wedding")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.seed)))
