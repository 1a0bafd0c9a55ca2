from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
import logging
import re
import uuid

from hospitality_hub.api.deps import get_db, get_current_user
from hospitality_hub.access.errors import OrganizationNotFound
from hospitality_hub.access.limits import ResourceKind, enforce_limit
from hospitality_hub.access.service import load_organization
from hospitality_hub.access.team import TeamAction, authorize_team_action
from hospitality_hub.models.activity import ActivityLog, DELETED_USER_NAME
from hospitality_hub.models.app_subscription import AppId
from hospitality_hub.models.invitation import InvitationStatus, UserInvitation
from hospitality_hub.models.user import User, UserRole, UserStatus
from hospitality_hub.security import get_password_hash
from hospitality_hub.utils.dates import utcnow
from hospitality_hub.utils.email import build_invite_url, send_invitation_email

logger = logging.getLogger(__name__)

router = APIRouter()

PIN_PATTERN = re.compile(r"^\d{4}$")

# --- Pydantic Models ---
class AddStaffRequest(BaseModel):
    name: str = Field(min_length=1)
    pin: str

class InviteRequest(BaseModel):
    email: EmailStr
    role: UserRole
    custom_message: Optional[str] = None

class AcceptInvitationRequest(BaseModel):
    full_name: str
    password: str = Field(min_length=8)

class UpdateRoleRequest(BaseModel):
    user_id: int
    new_role: UserRole

class DeleteUserRequest(BaseModel):
    user_id: int

class UpdatePinRequest(BaseModel):
    user_id: int
    action: Literal["set", "remove"] = "set"
    pin: Optional[str] = None

class MemberOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str]
    role: UserRole
    status: UserStatus
    has_pin: bool

# --- Helpers ---
def _validate_pin(pin: Optional[str]) -> str:
    if not pin or not PIN_PATTERN.match(pin):
        raise HTTPException(status_code=400, detail="PIN must be exactly 4 digits")
    return pin

def _require_organization(user: User) -> int:
    if user.organization_id is None:
        raise OrganizationNotFound("Organization not found")
    return user.organization_id

async def _get_target(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    target = result.scalar_one_or_none()
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    return target

def _log_activity(db: AsyncSession, actor: User, action_type: str, details: dict):
    db.add(ActivityLog(
        user_id=actor.id,
        user_name=actor.full_name or actor.email,
        organization_id=actor.organization_id,
        app_id=AppId.liquor_inventory.value,
        action_type=action_type,
        action_details=details,
    ))

# --- Team Routes ---
@router.get("/members", response_model=list[MemberOut])
async def list_members(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    organization_id = _require_organization(current_user)
    result = await db.execute(
        select(User).where(User.organization_id == organization_id).order_by(User.id)
    )
    return [
        MemberOut(
            id=member.id,
            email=member.email,
            full_name=member.full_name,
            role=member.role,
            status=member.status,
            has_pin=member.pin_hash is not None,
        )
        for member in result.scalars().all()
    ]

@router.post("/add-staff", status_code=status.HTTP_201_CREATED)
async def add_staff(
    payload: AddStaffRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    authorize_team_action(current_user, TeamAction.add_staff)
    organization_id = _require_organization(current_user)
    pin = _validate_pin(payload.pin)

    await enforce_limit(db, organization_id, ResourceKind.users)

    random_id = uuid.uuid4().hex[:8]
    slug = re.sub(r"\s+", "-", payload.name.strip().lower())
    staff = User(
        auth_id=str(uuid.uuid4()),
        email=f"mobile-{slug}-{random_id}@staff.local",
        full_name=payload.name,
        pin_hash=get_password_hash(pin),
        role=UserRole.staff,
        status=UserStatus.active,
        organization_id=organization_id,
    )
    db.add(staff)
    await db.flush()
    _log_activity(db, current_user, "staff_added", {"staff_name": payload.name, "staff_id": staff.id, "has_pin": True})
    await db.commit()

    logger.info(f"User {current_user.id} added staff member {staff.id} to organization {organization_id}")
    return {
        "success": True,
        "message": f"{payload.name} has been added successfully",
        "user": {"id": staff.id, "name": staff.full_name, "email": staff.email},
    }

@router.post("/invite", status_code=status.HTTP_201_CREATED)
async def invite_user(
    payload: InviteRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    authorize_team_action(current_user, TeamAction.invite, new_role=payload.role)
    organization_id = _require_organization(current_user)
    email = payload.email.lower()

    existing_member = await db.execute(
        select(User.id).where(User.email == email, User.organization_id == organization_id)
    )
    if existing_member.first():
        raise HTTPException(status_code=400, detail="User is already a member of this organization")

    existing_invitation = await db.execute(
        select(UserInvitation.id).where(
            UserInvitation.email == email,
            UserInvitation.organization_id == organization_id,
            UserInvitation.status == InvitationStatus.pending,
        )
    )
    if existing_invitation.first():
        raise HTTPException(status_code=400, detail="Invitation already sent to this email")

    await enforce_limit(db, organization_id, ResourceKind.users)

    invitation = UserInvitation(
        organization_id=organization_id,
        email=email,
        role=payload.role,
        invited_by=current_user.id,
        custom_message=payload.custom_message,
    )
    db.add(invitation)
    _log_activity(db, current_user, "user_invited", {"email": email, "role": payload.role.value})
    await db.commit()
    await db.refresh(invitation)

    organization = await load_organization(db, organization_id)
    invite_url = build_invite_url(invitation.invitation_token)
    background_tasks.add_task(
        send_invitation_email, email, organization.name, payload.role.value, invite_url, payload.custom_message
    )

    return {
        "success": True,
        "invitation": {
            "id": invitation.id,
            "email": invitation.email,
            "role": invitation.role,
            "expires_at": invitation.expires_at.isoformat(),
            "invite_url": invite_url,
        },
    }

@router.post("/invitations/{token}/accept")
async def accept_invitation(
    token: str,
    payload: AcceptInvitationRequest,
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(UserInvitation).where(UserInvitation.invitation_token == token))
    invitation = result.scalar_one_or_none()
    if not invitation or invitation.status != InvitationStatus.pending:
        raise HTTPException(status_code=404, detail="Invitation not found")
    if invitation.is_expired():
        invitation.status = InvitationStatus.expired
        await db.commit()
        raise HTTPException(status_code=410, detail="Invitation has expired")

    await enforce_limit(db, invitation.organization_id, ResourceKind.users)

    existing = await db.execute(select(User).where(User.email == invitation.email))
    user = existing.scalar_one_or_none()
    if user and user.organization_id is not None:
        raise HTTPException(status_code=409, detail="User already belongs to an organization")

    if user is None:
        user = User(auth_id=str(uuid.uuid4()), email=invitation.email)
        db.add(user)
    user.full_name = payload.full_name
    user.hashed_password = get_password_hash(payload.password)
    user.role = invitation.role
    user.status = UserStatus.active
    user.organization_id = invitation.organization_id
    invitation.status = InvitationStatus.accepted
    await db.commit()

    logger.info(f"{invitation.email} joined organization {invitation.organization_id}")
    return {"success": True, "message": "Invitation accepted", "organization_id": invitation.organization_id}

@router.post("/update-role")
async def update_role(
    payload: UpdateRoleRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    target = await _get_target(db, payload.user_id)
    authorize_team_action(current_user, TeamAction.change_role, target=target, new_role=payload.new_role)

    target.role = payload.new_role
    target.updated_at = utcnow()
    _log_activity(db, current_user, "role_updated", {
        "target_user": target.id,
        "target_email": target.email,
        "new_role": payload.new_role.value,
    })
    await db.commit()

    return {"success": True, "message": f"User role updated to {payload.new_role.value}"}

@router.post("/delete-user")
async def delete_user(
    payload: DeleteUserRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    target = await _get_target(db, payload.user_id)
    authorize_team_action(current_user, TeamAction.delete, target=target)
    target_name = target.full_name or target.email

    # Keep the audit trail but drop the reference to the deleted user
    await db.execute(
        update(ActivityLog)
        .where(ActivityLog.user_id == target.id)
        .values(user_id=None, user_name=DELETED_USER_NAME)
    )
    await db.execute(
        update(UserInvitation)
        .where(UserInvitation.invited_by == target.id)
        .values(invited_by=None)
    )
    _log_activity(db, current_user, "user_deleted", {"target_user": target.id, "target_name": target_name})
    await db.delete(target)
    await db.commit()

    logger.info(f"User {current_user.id} removed user {payload.user_id} from organization {current_user.organization_id}")
    return {"success": True, "message": f"User {target_name} has been removed"}

@router.post("/update-pin")
async def update_pin(
    payload: UpdatePinRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    target = await _get_target(db, payload.user_id)
    authorize_team_action(current_user, TeamAction.update_pin, target=target)

    if payload.action == "remove":
        target.pin_hash = None
        message = "PIN removed successfully"
    else:
        target.pin_hash = get_password_hash(_validate_pin(payload.pin))
        message = "PIN updated successfully"

    _log_activity(db, current_user, "pin_updated", {"target_user": target.id, "action": payload.action})
    await db.commit()
    return {"success": True, "message": message}
