"""
Workspace role checks.

Roles are ordered (Viewer < Editor < Owner). A view declares the minimum role
it needs through a `required_role` attribute; `HasWorkspaceRole` resolves the
workspace from the `tenant_key` URL kwarg and checks the caller's active
membership against it.

Every denial is the same 403, whether the workspace is missing, the caller is
not a member, or the role is too low, so callers cannot probe for workspace
existence.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission

from .models import WorkspaceMembership

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser


logger = logging.getLogger(__name__)

Role = WorkspaceMembership.Role

ROLE_ORDER = {
    Role.VIEWER: 1,
    Role.EDITOR: 2,
    Role.OWNER: 3,
}

ACCESS_DENIED_DETAIL = "You do not have access to this workspace."


def get_membership(user: "AbstractBaseUser", tenant_key: UUID) -> Optional[WorkspaceMembership]:
    """Return the caller's active membership in the workspace, or None."""
    if not user or not getattr(user, "is_authenticated", False):
        return None
    return (
        WorkspaceMembership.objects
        .filter(user=user, workspace__key=tenant_key, is_active=True)
        .select_related("workspace")
        .first()
    )


def has_min_role(membership: Optional[WorkspaceMembership], min_role: str) -> bool:
    if membership is None:
        return False
    return ROLE_ORDER.get(membership.role, 0) >= ROLE_ORDER.get(min_role, 0)


class HasWorkspaceRole(BasePermission):
    """
    Ensures the user is a member of the workspace in the URL with at least
    the view's `required_role`. On success the workspace is stored on the
    view as `view.workspace` for the handler to pass along explicitly.
    """

    message = ACCESS_DENIED_DETAIL

    def has_permission(self, request, view) -> bool:
        tenant_key = view.kwargs.get("tenant_key")
        if tenant_key is None:
            return False

        min_role = getattr(view, "required_role", Role.VIEWER)
        if hasattr(view, "get_required_role"):
            min_role = view.get_required_role(request)

        membership = get_membership(request.user, tenant_key)
        if not has_min_role(membership, min_role):
            logger.warning(
                "Workspace access denied: user=%s tenant=%s required=%s",
                getattr(request.user, "pk", None),
                tenant_key,
                min_role,
            )
            # Same 403 for anonymous callers and non-members.
            raise PermissionDenied(self.message)

        view.workspace = membership.workspace
        view.membership = membership
        return True
