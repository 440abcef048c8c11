from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from powdercoat.schemas.auth import RegisterIn, TokenOut
from powdercoat.models.user import User
from powdercoat.db.session import get_db
from powdercoat.core.security import create_access_token, hash_password, verify_password, get_current_user
from powdercoat.core.enums import UserRole, AuditAction
from powdercoat.core.audit_decorator import log_audit

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenOut)
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_db)):
    email = payload.email.strip().lower()
    res = await db.execute(select(User).where(User.email == email))
    existing_user = res.scalars().first()
    if existing_user:
        raise HTTPException(status_code=400, detail="Email already registered")
    
    new_user = User(
        email=email,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name,
        role=UserRole.CLIENT,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    
    await log_audit(db, int(new_user.id), AuditAction.REGISTER, {"email": email})
    
    token = create_access_token(str(new_user.id), new_user.role)
    return {"access_token": token}


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.email == form_data.username.strip().lower()))
    user = res.scalars().first()
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    
    await log_audit(db, int(user.id), AuditAction.LOGIN, {"email": user.email})
    
    token = create_access_token(str(user.id), user.role)
    return {"access_token": token}


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "email": current_user.email,
        "full_name": current_user.full_name,
        "role": str(current_user.role),
    }
