"""Team member profiles and their login accounts."""
import logging
import re
import secrets
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from powdercoat.core.config import settings
from powdercoat.core.enums import UserRole
from powdercoat.core.errors import ConflictError, NotFoundError, OrderValidationError
from powdercoat.core.security import hash_password
from powdercoat.models.team import TeamMember
from powdercoat.models.user import User
from powdercoat.schemas.team import ProvisionResult

logger = logging.getLogger(__name__)


def default_email(name: str) -> str:
    local = re.sub(r"\s+", ".", name.strip().lower())
    local = re.sub(r"[^a-z0-9._-]", "", local)
    return f"{local}@{settings.TEAM_EMAIL_DOMAIN}"


def generate_password() -> str:
    return secrets.token_urlsafe(12)


async def _email_taken(db: AsyncSession, email: str, exclude_user_id: Optional[int] = None) -> bool:
    q = select(User.id).where(User.email == email)
    if exclude_user_id is not None:
        q = q.where(User.id != exclude_user_id)
    res = await db.execute(q)
    return res.scalars().first() is not None


async def provision_account(
    db: AsyncSession,
    member: TeamMember,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> Tuple[User, Optional[str]]:
    """Create the login for a team member.

    Returns the user and the generated password, or None when the caller
    supplied one.
    """
    if member.user_id is not None:
        raise ConflictError(f"Team member {member.name} already has an account")

    email = (email or member.email or default_email(member.name)).strip().lower()
    if await _email_taken(db, email):
        raise ConflictError(f"Email {email} is already registered")

    generated = None
    if not password:
        password = generated = generate_password()

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=member.name,
        role=UserRole.TEAM_MEMBER,
    )
    db.add(user)
    await db.flush()

    member.user_id = user.id
    member.email = email
    db.add(member)
    await db.commit()

    logger.info(f"Provisioned account {email} for team member {member.id}")
    return user, generated


async def batch_provision(db: AsyncSession) -> List[ProvisionResult]:
    res = await db.execute(select(TeamMember).where(TeamMember.user_id.is_(None)).order_by(TeamMember.id))
    members = res.scalars().all()
    logger.info(f"Found {len(members)} team members without accounts")

    results = []
    for member in members:
        try:
            user, password = await provision_account(db, member)
            results.append(ProvisionResult(
                team_member_id=member.id, name=member.name, success=True,
                email=user.email, password=password,
            ))
        except ConflictError as e:
            logger.warning(f"Could not provision account for {member.name}: {e.detail}")
            results.append(ProvisionResult(
                team_member_id=member.id, name=member.name, success=False, error=e.detail,
            ))
    return results


async def update_credentials(
    db: AsyncSession,
    member: TeamMember,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> List[str]:
    if member.user_id is None:
        raise NotFoundError(f"Team member {member.name} has no account")
    if not email and not password:
        raise OrderValidationError("Nothing to update: provide an email or a password")

    res = await db.execute(select(User).where(User.id == member.user_id))
    user = res.scalars().first()
    if user is None:
        raise NotFoundError(f"User with id {member.user_id} not found")

    updated = []
    if email:
        email = email.strip().lower()
        if await _email_taken(db, email, exclude_user_id=user.id):
            raise ConflictError(f"Email {email} is already registered")
        user.email = email
        member.email = email
        updated.append("email")
    if password:
        user.password_hash = hash_password(password)
        updated.append("password")

    db.add_all([user, member])
    await db.commit()
    return updated
