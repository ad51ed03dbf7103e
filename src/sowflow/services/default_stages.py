"""Default approval stage definitions seeded in local mode."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.config import settings
from sowflow.models.enums import Role, StageKind
from sowflow.repositories.stage_repo import ApprovalStageRepository
from sowflow.repositories.user_repo import UserRepository
from sowflow.services.id_generator import generate_id
from sowflow.services.security import hash_password

logger = logging.getLogger(__name__)


DEFAULT_STAGES = [
    {
        "name": StageKind.MANAGER.value,
        "description": "First gate: reviewed by the owning manager",
        "assigned_role": Role.MANAGER.value,
        "sort_order": 1,
    },
    {
        "name": StageKind.DIRECTOR.value,
        "description": "Reachable once the manager has approved",
        "assigned_role": Role.DIRECTOR.value,
        "sort_order": 2,
    },
    {
        "name": StageKind.VP.value,
        "description": "Approval here completes the workflow regardless of other stages",
        "assigned_role": Role.VP.value,
        "sort_order": 3,
    },
]


async def seed_default_stages(session: AsyncSession) -> int:
    """Insert any default stage missing by name. Returns the number created."""
    repo = ApprovalStageRepository(session)
    created = 0
    for definition in DEFAULT_STAGES:
        if await repo.get_by_name(definition["name"]):
            continue
        await repo.create(
            stage_id=generate_id("stg_"),
            auto_approve=False,
            requires_comment=False,
            is_active=True,
            **definition,
        )
        created += 1
    return created


async def seed_bootstrap_admin(session: AsyncSession) -> bool:
    """Create the configured bootstrap admin if it does not exist yet."""
    email = settings.bootstrap_admin_email
    password = settings.bootstrap_admin_password
    if not email or not password:
        return False

    repo = UserRepository(session)
    if await repo.get_by_email(email):
        return False
    await repo.create(
        user_id=generate_id("usr_"),
        email=email,
        display_name="Administrator",
        hashed_password=hash_password(password),
        role=Role.ADMIN.value,
        is_admin=True,
        is_active=True,
    )
    logger.info("Bootstrap admin %s created", email)
    return True
