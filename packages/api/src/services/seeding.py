# This project was developed with assistance from AI tools.
"""Demo organization and accounts.

Seeds one agency with an admin and two consultants so the dashboard can be
signed into right after deployment. Simulated data only.
"""

import logging

from db import Case, Organization, User
from db.enums import UserRole
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import hash_password

logger = logging.getLogger(__name__)

DEMO_ORGANIZATION = "Visa Desk Demo Agency"

DEMO_USERS = [
    {
        "username": "admin",
        "email": "admin@visa-desk.local",
        "full_name": "Agency Admin",
        "role": UserRole.ADMIN,
        "password": "admin123",
    },
    {
        "username": "consultant1",
        "email": "li.wei@visa-desk.local",
        "full_name": "李伟",
        "role": UserRole.CONSULTANT,
        "password": "consultant123",
    },
    {
        "username": "consultant2",
        "email": "zhang.min@visa-desk.local",
        "full_name": "张敏",
        "role": UserRole.CONSULTANT,
        "password": "consultant123",
    },
]


async def seed_demo_data(session: AsyncSession, force: bool = False) -> dict:
    """Create the demo tenant. With ``force`` the tenant is wiped first."""
    stmt = select(Organization).where(Organization.name == DEMO_ORGANIZATION)
    org = (await session.execute(stmt)).scalar_one_or_none()
    if org is not None and not force:
        return {"status": "already_seeded", "organization_id": org.id}

    if org is not None:
        await session.execute(delete(Case).where(Case.organization_id == org.id))
        await session.execute(delete(User).where(User.organization_id == org.id))
        await session.delete(org)
        await session.flush()
        logger.info("Cleared demo organization %s", org.id)

    org = Organization(name=DEMO_ORGANIZATION)
    session.add(org)
    await session.flush()
    for entry in DEMO_USERS:
        session.add(
            User(
                organization_id=org.id,
                username=entry["username"],
                email=entry["email"],
                full_name=entry["full_name"],
                role=entry["role"],
                hashed_password=hash_password(entry["password"]),
                is_active=True,
            )
        )
    await session.commit()
    logger.info("Seeded demo organization %s with %s users", org.id, len(DEMO_USERS))
    return {
        "status": "seeded",
        "organization_id": org.id,
        "users": [u["username"] for u in DEMO_USERS],
    }
