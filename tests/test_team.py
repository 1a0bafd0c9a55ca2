from types import SimpleNamespace

import pytest

from hospitality_hub.access.errors import CrossOrganizationViolation, InsufficientRole, NotAuthenticated
from hospitality_hub.access.team import TeamAction, authorize_team_action
from hospitality_hub.models.user import UserRole


def member(user_id, role, organization_id=1):
    return SimpleNamespace(id=user_id, role=role, organization_id=organization_id)


class TestDelete:
    def test_manager_cannot_delete_owner(self):
        with pytest.raises(InsufficientRole):
            authorize_team_action(member(1, UserRole.manager), TeamAction.delete, target=member(2, UserRole.owner))

    def test_owner_can_delete_owner(self):
        authorize_team_action(member(1, UserRole.owner), TeamAction.delete, target=member(2, UserRole.owner))

    @pytest.mark.parametrize("role", list(UserRole))
    def test_nobody_can_delete_themselves(self, role):
        actor = member(1, role)
        with pytest.raises(InsufficientRole):
            authorize_team_action(actor, TeamAction.delete, target=actor)

    def test_manager_can_delete_staff(self):
        authorize_team_action(member(1, UserRole.manager), TeamAction.delete, target=member(2, UserRole.staff))


class TestRoles:
    @pytest.mark.parametrize("role", [UserRole.staff, UserRole.viewer])
    def test_staff_and_viewers_cannot_manage_team(self, role):
        with pytest.raises(InsufficientRole):
            authorize_team_action(member(1, role), TeamAction.update_pin, target=member(2, UserRole.staff))

    def test_manager_cannot_promote_to_owner(self):
        with pytest.raises(InsufficientRole):
            authorize_team_action(
                member(1, UserRole.manager), TeamAction.change_role,
                target=member(2, UserRole.staff), new_role=UserRole.owner,
            )

    def test_owner_can_promote_to_owner(self):
        authorize_team_action(
            member(1, UserRole.owner), TeamAction.change_role,
            target=member(2, UserRole.manager), new_role=UserRole.owner,
        )

    def test_manager_cannot_demote_owner(self):
        with pytest.raises(InsufficientRole):
            authorize_team_action(
                member(1, UserRole.manager), TeamAction.change_role,
                target=member(2, UserRole.owner), new_role=UserRole.staff,
            )

    def test_owner_cannot_demote_themselves(self):
        actor = member(1, UserRole.owner)
        with pytest.raises(InsufficientRole):
            authorize_team_action(actor, TeamAction.change_role, target=actor, new_role=UserRole.manager)

    def test_manager_cannot_invite_an_owner(self):
        with pytest.raises(InsufficientRole):
            authorize_team_action(member(1, UserRole.manager), TeamAction.invite, new_role=UserRole.owner)

    def test_manager_can_invite_staff(self):
        authorize_team_action(member(1, UserRole.manager), TeamAction.invite, new_role=UserRole.staff)


class TestTenancy:
    def test_manager_cannot_touch_staff_of_another_organization(self):
        with pytest.raises(CrossOrganizationViolation):
            authorize_team_action(
                member(1, UserRole.manager, organization_id=1), TeamAction.update_pin,
                target=member(2, UserRole.staff, organization_id=2),
            )

    def test_owner_cannot_touch_another_organization_either(self):
        with pytest.raises(CrossOrganizationViolation):
            authorize_team_action(
                member(1, UserRole.owner, organization_id=1), TeamAction.delete,
                target=member(2, UserRole.viewer, organization_id=2),
            )

    def test_actor_without_organization_is_rejected(self):
        with pytest.raises(CrossOrganizationViolation):
            authorize_team_action(
                member(1, UserRole.owner, organization_id=None), TeamAction.delete,
                target=member(2, UserRole.staff, organization_id=None),
            )


def test_missing_actor():
    with pytest.raises(NotAuthenticated):
        authorize_team_action(None, TeamAction.invite)
