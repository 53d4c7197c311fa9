"""
Seed the default fee schedule and login accounts.

Run once after init_db:
  python -m feedesk.db.seed

Creates (only what is missing):
- fee_config: default development fees per class and bus stop charges
- users: "admin" and one class teacher per class/division ("class7a", "class11b", ...)
All accounts get DEFAULT_USER_PASSWORD; change it after the first login.
"""
import asyncio
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fee_config.service import seed_default_schedule
from feedesk.auth.models import User
from feedesk.auth.security import hash_password
from feedesk.core.config import settings
from feedesk.core.enums import UserRole
from feedesk.db.init_db import ensure_tables
from feedesk.db.session import AsyncSessionLocal, engine
from feedesk.fees.schedule import CLASSES, DIVISIONS

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "admin"


def default_accounts() -> List[Tuple[str, UserRole, Optional[str], Optional[str]]]:
    """(username, role, class, division) for every default login."""
    accounts = [(ADMIN_USERNAME, UserRole.ADMIN, None, None)]
    for class_name in CLASSES:
        for division in DIVISIONS:
            accounts.append((f"class{class_name}{division.lower()}", UserRole.TEACHER, class_name, division))
    return accounts


async def seed_users(db: AsyncSession) -> int:
    existing = set((await db.execute(select(User.username))).scalars().all())
    password_hash = hash_password(settings.default_user_password)
    created = 0
    for username, role, class_name, division in default_accounts():
        if username in existing:
            continue
        db.add(
            User(
                username=username,
                password_hash=password_hash,
                role=role.value,
                class_name=class_name,
                division=division,
            )
        )
        created += 1
    await db.commit()
    return created


async def seed(db: AsyncSession) -> None:
    fee_rows = await seed_default_schedule(db)
    if fee_rows:
        logger.info("Seeded %d fee schedule entries.", fee_rows)
    else:
        logger.info("Fee schedule already present; left unchanged.")

    users = await seed_users(db)
    logger.info("Created %d user accounts.", users)


async def main() -> None:
    await ensure_tables(engine)
    async with AsyncSessionLocal() as db:
        try:
            await seed(db)
        except Exception:
            await db.rollback()
            logger.exception("Seeding failed")
            raise


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
