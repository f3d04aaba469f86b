"""
Project role checks.

Membership is the only authorization fact for project-scoped work: any
member may read and work on tasks, owners and admins manage members and
project settings, only the owner deletes the project. Tasks and comments are
authorized through their parent project.
"""
from rest_framework import permissions

from apps.projects.exceptions import AccessDenied, EntityNotFound
from apps.projects.storage import storage
from .models import ProjectMember


def has_project_access(project_id, user_id):
    """Returns the caller's membership, or None."""
    return storage.get_user_project_role(project_id, user_id)


def has_elevated_role(membership) -> bool:
    return membership is not None and membership.role in (ProjectMember.Role.OWNER, ProjectMember.Role.ADMIN)


def require_project_access(project_id, user_id):
    """
    Membership of ``user_id`` in an existing project. Raises EntityNotFound for
    unknown projects and AccessDenied for non-members.
    """
    project = storage.get_project(project_id)
    if project is None:
        raise EntityNotFound('Project not found')
    membership = has_project_access(project_id, user_id)
    if membership is None:
        raise AccessDenied()
    membership.project = project
    return membership


def require_elevated_role(membership):
    if not has_elevated_role(membership):
        raise AccessDenied('Insufficient permissions')
    return membership


def require_owner(membership):
    if membership is None or membership.role != ProjectMember.Role.OWNER:
        raise AccessDenied('Only the project owner can do this')
    return membership


class IsProjectMember(permissions.BasePermission):
    """
    Allows access only to members of the project named by the ``project_id``
    URL argument. The membership is left on ``view.membership``.
    """

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        view.membership = require_project_access(view.kwargs['project_id'], request.user.id)
        return True
