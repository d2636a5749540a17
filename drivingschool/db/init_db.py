"""
Create all tables and seed the admin role and user.

Run once with env set:
  DATABASE_URL=postgresql+asyncpg://...
  ADMIN_USERNAME=admin
  ADMIN_PASSWORD=YourSecurePassword

  python -m drivingschool.db.init_db
"""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.models import Role, User
from drivingschool.auth.rbac import ADMIN_ROLE
from drivingschool.auth.security import hash_password
from drivingschool.core.config import Settings, get_settings
from drivingschool.core.enums import UserStatus
from drivingschool.core.logging import configure_logging
from drivingschool.core import models  # noqa: F401  registers every table
from drivingschool.db.session import Base, build_engine, build_sessionmaker

logger = logging.getLogger(__name__)

ALL_ACTIONS = {"create": True, "read": True, "update": True, "delete": True}
PERMISSION_MODULES = ("class_types", "students", "payments", "exams", "coaches", "salary")


async def seed_admin(db: AsyncSession, settings: Settings) -> None:
    role = (await db.execute(select(Role).where(Role.name == ADMIN_ROLE))).scalar_one_or_none()
    if role is None:
        # admin bypasses checks; the row documents the full permission shape
        db.add(Role(name=ADMIN_ROLE, permissions={module: dict(ALL_ACTIONS) for module in PERMISSION_MODULES}))
        logger.info("Created %s role", ADMIN_ROLE)

    if not settings.admin_username or not settings.admin_password:
        await db.commit()
        logger.warning("ADMIN_USERNAME/ADMIN_PASSWORD not set; skipping admin user")
        return

    user = (
        await db.execute(select(User).where(User.username == settings.admin_username))
    ).scalar_one_or_none()
    if user is None:
        db.add(
            User(
                username=settings.admin_username,
                password_hash=hash_password(settings.admin_password),
                real_name="系统管理员",
                role=ADMIN_ROLE,
                status=UserStatus.ACTIVE.value,
            )
        )
        logger.info("Created admin user %s", settings.admin_username)
    else:
        user.role = ADMIN_ROLE
        user.password_hash = hash_password(settings.admin_password)
        logger.info("Reset admin user %s", settings.admin_username)
    await db.commit()


async def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    engine = build_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    sessionmaker = build_sessionmaker(engine)
    async with sessionmaker() as db:
        try:
            await seed_admin(db, settings)
        except Exception:
            await db.rollback()
            logger.exception("Seeding failed")
            raise
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
