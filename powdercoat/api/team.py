from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List

from powdercoat.db.session import get_db
from powdercoat.models.team import TeamMember
from powdercoat.schemas.team import (
    TeamMemberCreate, TeamMemberUpdate, TeamMemberOut, AvailabilityIn,
    CredentialsIn, AccountOut, BatchProvisionOut,
)
from powdercoat.core.security import get_current_user, require_admin, require_team_member
from powdercoat.core.audit_decorator import audit_log
from powdercoat.core.rate_limit import check_rate_limit
from powdercoat.core.auth_utils import check_not_found, get_team_profile
from powdercoat.core.enums import AuditAction
from powdercoat.services import accounts

router = APIRouter(prefix="/team-members", tags=["team"])


async def load_member(db: AsyncSession, member_id: int) -> TeamMember:
    res = await db.execute(select(TeamMember).where(TeamMember.id == member_id))
    member = res.scalars().first()
    check_not_found(member, "Team member", member_id)
    return member


@router.get("/", response_model=List[TeamMemberOut])
async def list_team_members(
    department: str | None = None,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user)
):
    q = select(TeamMember).order_by(TeamMember.name)
    if department:
        q = q.where(TeamMember.department == department)
    res = await db.execute(q)
    return res.scalars().all()


@router.post("/", response_model=TeamMemberOut)
@audit_log(AuditAction.CREATE_TEAM_MEMBER)
async def create_team_member(
    payload: TeamMemberCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    member = TeamMember(
        name=payload.name,
        role=payload.role,
        department=payload.department,
        avatar_url=payload.avatar_url,
    )
    db.add(member)
    await db.commit()
    
    if payload.create_account:
        await accounts.provision_account(db, member, email=payload.email, password=payload.password)
    elif payload.email:
        member.email = payload.email.strip().lower()
        db.add(member)
        await db.commit()
    
    return member


@router.put("/me/availability", response_model=TeamMemberOut)
async def update_my_availability(
    payload: AvailabilityIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_team_member)
):
    member = await get_team_profile(db, current_user)
    check_not_found(member, "Team member profile")
    
    member.availability = payload.availability
    db.add(member)
    await db.commit()
    return member


@router.post("/accounts/batch", response_model=BatchProvisionOut)
@audit_log(AuditAction.PROVISION_ACCOUNT)
async def batch_create_accounts(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    return BatchProvisionOut(created=await accounts.batch_provision(db))


@router.put("/{member_id}", response_model=TeamMemberOut)
@audit_log(AuditAction.UPDATE_TEAM_MEMBER)
async def update_team_member(
    member_id: int,
    payload: TeamMemberUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    member = await load_member(db, member_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
        setattr(member, field, value)
    
    db.add(member)
    await db.commit()
    return member


@router.delete("/{member_id}")
@audit_log(AuditAction.DELETE_TEAM_MEMBER)
async def delete_team_member(
    member_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    member = await load_member(db, member_id)
    await db.delete(member)
    await db.commit()
    
    return {"deleted": True}


@router.post("/{member_id}/account", response_model=AccountOut)
@audit_log(AuditAction.PROVISION_ACCOUNT)
async def create_account(
    member_id: int,
    payload: CredentialsIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    member = await load_member(db, member_id)
    user, password = await accounts.provision_account(db, member, email=payload.email, password=payload.password)
    
    return AccountOut(team_member_id=member.id, user_id=user.id, email=user.email, password=password)


@router.put("/{member_id}/credentials")
@audit_log(AuditAction.UPDATE_CREDENTIALS)
async def update_credentials(
    member_id: int,
    payload: CredentialsIn,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin)
):
    await check_rate_limit(int(current_user.id))
    
    member = await load_member(db, member_id)
    updated = await accounts.update_credentials(db, member, email=payload.email, password=payload.password)
    
    return {"success": True, "updated_fields": updated}
