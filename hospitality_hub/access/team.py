"""Role gate for actions that mutate other members of an organization."""

import logging
from enum import Enum
from typing import Optional

from hospitality_hub.access.errors import CrossOrganizationViolation, InsufficientRole, NotAuthenticated
from hospitality_hub.models.user import UserRole

logger = logging.getLogger(__name__)

TEAM_MANAGER_ROLES = (UserRole.owner, UserRole.manager)


class TeamAction(str, Enum):
    invite = "invite"
    add_staff = "add_staff"
    change_role = "change_role"
    delete = "delete"
    update_pin = "update_pin"


def authorize_team_action(actor, action: TeamAction, target=None, new_role: Optional[UserRole] = None) -> None:
    """Raise unless ``actor`` may perform ``action`` on ``target``.

    Platform admins get no bypass here: this gate is about team membership,
    not subscriptions.
    """
    if actor is None:
        raise NotAuthenticated("Authentication required")

    action = TeamAction(action)
    actor_role = UserRole(actor.role)

    if actor_role not in TEAM_MANAGER_ROLES:
        raise InsufficientRole("Only owners and managers can manage team members")

    if target is not None:
        if actor.organization_id is None or target.organization_id != actor.organization_id:
            logger.warning(
                f"User {actor.id} attempted {action.value} on user {target.id} from another organization"
            )
            raise CrossOrganizationViolation("Cannot manage users from different organizations")

        if target.id == actor.id and action in (TeamAction.delete, TeamAction.change_role):
            verb = "delete" if action == TeamAction.delete else "change the role of"
            raise InsufficientRole(f"You cannot {verb} yourself")

        target_role = UserRole(target.role)
        if target_role == UserRole.owner and actor_role != UserRole.owner:
            if action == TeamAction.delete:
                raise InsufficientRole("Only owners can delete an owner")
            if action == TeamAction.change_role:
                raise InsufficientRole("Only owners can change the role of an owner")

    if new_role is not None and UserRole(new_role) == UserRole.owner and actor_role != UserRole.owner:
        raise InsufficientRole("Only owners can assign the owner role")
