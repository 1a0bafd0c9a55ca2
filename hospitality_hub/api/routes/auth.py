from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from pydantic import BaseModel, EmailStr, Field
import logging
import re
import uuid

from hospitality_hub.api.deps import get_db
from hospitality_hub.access.service import start_organization_trial
from hospitality_hub.models.organization import Organization
from hospitality_hub.models.user import User, UserRole, UserStatus
from hospitality_hub.security import create_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()

# --- Pydantic Models ---
class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str
    company: str = Field(min_length=1)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", name.lower())

async def _unique_slug(db: AsyncSession, name: str) -> str:
    base = slugify(name)
    slug = base
    suffix = 1
    while (await db.execute(select(Organization.id).where(Organization.slug == slug))).first():
        suffix += 1
        slug = f"{base}-{suffix}"
    return slug

# --- Registration & Authentication Routes ---
@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=TokenResponse)
async def signup(payload: SignupRequest, db: AsyncSession = Depends(get_db)):
    stmt = select(User).where(User.email == payload.email.lower())
    result = await db.execute(stmt)
    if result.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    organization = Organization(name=payload.company, slug=await _unique_slug(db, payload.company))
    start_organization_trial(organization)
    db.add(organization)
    await db.flush()

    owner = User(
        auth_id=str(uuid.uuid4()),
        email=payload.email.lower(),
        full_name=payload.full_name,
        hashed_password=get_password_hash(payload.password),
        role=UserRole.owner,
        status=UserStatus.active,
        organization_id=organization.id,
    )
    db.add(owner)
    await db.commit()

    logger.info(f"Created organization {organization.id} with a 30-day trial for {owner.email}")
    return TokenResponse(access_token=create_access_token(data={"sub": owner.email}))

@router.post("/login/token", response_model=TokenResponse)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    stmt = select(User).where(User.email == form_data.username.lower())
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user.status != UserStatus.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is suspended")

    return TokenResponse(access_token=create_access_token(data={"sub": user.email}))
