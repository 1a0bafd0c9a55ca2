from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from hospitality_hub.models.app_subscription import AppId
from hospitality_hub.models.user import UserRole


class AccessOutcome(str, Enum):
    granted = "granted"
    trial_available = "trial-available"
    trial_expired = "trial-expired"
    subscription_required = "subscription-required"
    denied = "denied"
    evaluation_failed = "evaluation-failed"


class Permission(str, Enum):
    view = "view"
    create = "create"
    edit = "edit"
    delete = "delete"
    export = "export"
    admin = "admin"


ALL_PERMISSIONS: List[Permission] = list(Permission)

_INVENTORY_STYLE_APPS = (AppId.liquor_inventory, AppId.reservation_management)

# Default role permissions for each app
DEFAULT_ROLE_PERMISSIONS: Dict[UserRole, Dict[AppId, List[Permission]]] = {
    UserRole.owner: {app: list(ALL_PERMISSIONS) for app in AppId},
    UserRole.manager: {
        app: [Permission.view, Permission.create, Permission.edit, Permission.delete, Permission.export]
        for app in AppId
    },
    UserRole.staff: {
        app: (
            [Permission.view, Permission.create, Permission.edit]
            if app in _INVENTORY_STYLE_APPS
            else [Permission.view, Permission.create]
        )
        for app in AppId
    },
    UserRole.viewer: {app: [Permission.view] for app in AppId},
}

# Feature-specific permissions: feature -> action -> allowed roles
FEATURE_PERMISSIONS: Dict[str, Dict[str, List[UserRole]]] = {
    "organization-settings": {
        "view-settings": [UserRole.owner, UserRole.manager],
    },
}


def role_permissions(role: Optional[UserRole], app_id: AppId) -> List[Permission]:
    if role is None:
        return []
    return list(DEFAULT_ROLE_PERMISSIONS.get(UserRole(role), {}).get(app_id, []))


def can_perform_feature(role: Optional[UserRole], feature: str, action: str) -> bool:
    """Unknown features and actions are never allowed."""
    if role is None:
        return False
    allowed_roles = FEATURE_PERMISSIONS.get(feature, {}).get(action)
    if not allowed_roles:
        return False
    return UserRole(role) in allowed_roles


class AccessDecision(BaseModel):
    app_id: AppId
    outcome: AccessOutcome
    reason: str
    permissions: List[Permission] = Field(default_factory=list)
    subscription_type: Optional[str] = None  # bundle | individual | trial | grandfathered
    trial_days_remaining: Optional[int] = None
    trial_ends_at: Optional[datetime] = None

    @property
    def has_access(self) -> bool:
        return self.outcome == AccessOutcome.granted

    def to_response(self) -> dict:
        data = self.model_dump(mode="json")
        data["has_access"] = self.has_access
        return data
