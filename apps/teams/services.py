"""
Invitation lifecycle: pending -> accepted, exactly once.
"""
import logging

from django.conf import settings
from django.db import transaction

from apps.google_auth.services import GmailService
from apps.projects.exceptions import Conflict, EntityNotFound, UpstreamServiceError
from apps.projects.storage import storage
from .models import Invitation

logger = logging.getLogger(__name__)


def invitation_link(invitation):
    return f"{settings.FRONTEND_URL}/invite/{invitation.id}"


def invite_member(project, inviter, email, role, context):
    """
    Allow ``email`` on the project, record a pending invitation and a
    ``member_added`` activity, then try to e-mail the invitation through the
    inviter's Gmail. A failed e-mail is logged and does not undo the invitation.

    Returns ``(invitation, email_sent)``.
    """
    existing_user = storage.get_user_by_email(email)
    if existing_user is not None and storage.get_user_project_role(project.id, existing_user.id):
        raise Conflict(f"{email} is already a member of this project")

    with transaction.atomic():
        allowed = list(project.allowed_emails or [])
        if email.lower() not in [allowed_email.lower() for allowed_email in allowed]:
            allowed.append(email)
            project = storage.update_project(project.id, allowed_emails=allowed)

        invitation = storage.create_invitation(
            project_id=project.id,
            email=email,
            role=role,
            inviter_name=inviter.display_name,
            invited_by_id=inviter.id,
        )
        storage.create_activity(
            project_id=project.id,
            activity_type='member_added',
            description=f"Invited {email} to the project as {role}",
            user_id=inviter.id,
            entity_id=email,
        )

    email_sent = False
    if context.has_valid_tokens and context.has_gmail_scope:
        try:
            GmailService(context.google_tokens.access_token).send_invitation_email(
                to=email,
                project_name=project.name,
                inviter_name=inviter.display_name,
                role=role,
                invite_link=invitation_link(invitation),
            )
            email_sent = True
        except UpstreamServiceError as e:
            logger.warning(f"Invitation {invitation.id} created but e-mail to {email} failed: {e.detail}")
    else:
        logger.info(f"Invitation {invitation.id} for {email} not e-mailed: Gmail is not linked for this session")

    return invitation, email_sent


def accept_invitation(invitation_id):
    """
    Accept a pending invitation: resolve or create the invited user and make
    sure they hold a membership with the invitation's role.

    Returns ``(user, project, membership)``. A second acceptance raises Conflict.
    """
    invitation = storage.get_invitation(invitation_id)
    if invitation is None:
        raise EntityNotFound('Invitation not found')
    if invitation.status != Invitation.Status.PENDING:
        raise Conflict('Invitation already accepted')

    with transaction.atomic():
        if not storage.mark_invitation_accepted(invitation.id):
            raise Conflict('Invitation already accepted')

        project = storage.get_project(invitation.project_id)
        user = storage.get_or_create_user_by_email(invitation.email)
        membership, created = storage.ensure_project_member(project.id, user.id, invitation.role)

    if created:
        logger.info(f"{invitation.email} joined project {project.id} as {membership.role}")
    else:
        logger.info(f"{invitation.email} already a member of project {project.id}")
    return user, project, membership
