import logging

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.google_auth.session import GoogleApiConfig, SessionContext
from apps.google_auth.views import save_context
from apps.projects.exceptions import EntityNotFound
from apps.projects.serializers import ProjectMemberSerializer
from apps.projects.storage import storage
from .permissions import IsProjectMember, require_elevated_role
from .serializers import InvitationSerializer, InviteMemberSerializer
from .services import accept_invitation, invite_member

logger = logging.getLogger(__name__)


class ProjectMembersView(APIView):
    """List members; owners and admins invite new ones by e-mail."""
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def get(self, request, project_id):
        members = storage.get_project_members(project_id)
        return Response(ProjectMemberSerializer(members, many=True).data)

    def post(self, request, project_id):
        require_elevated_role(self.membership)

        serializer = InviteMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data['email']
        role = serializer.validated_data['role']

        invitation, email_sent = invite_member(
            self.membership.project, request.user, email, role, request.auth
        )
        return Response({
            'success': True,
            'invitationId': invitation.id,
            'emailSent': email_sent,
            'message': f"Invitation sent to {email}" if email_sent else f"Invitation created for {email}",
        }, status=status.HTTP_201_CREATED)


class ProjectMemberDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def delete(self, request, project_id, user_id):
        require_elevated_role(self.membership)
        storage.remove_project_member(project_id, user_id)
        storage.create_activity(
            project_id=project_id,
            activity_type='member_removed',
            description=f"Removed {user_id} from the project",
            user_id=request.user.id,
            entity_id=user_id,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


class InvitationDetailView(APIView):
    """Public: what the invite page shows before accepting."""
    permission_classes = [permissions.AllowAny]

    def get(self, request, invitation_id):
        invitation = storage.get_invitation(invitation_id)
        if invitation is None:
            raise EntityNotFound('Invitation not found')
        return Response(InvitationSerializer(invitation).data)


class AcceptInvitationView(APIView):
    """
    Public. Signs the session in as the invited user and hands them the
    project owner's Google configuration.
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request, invitation_id):
        user, project, membership = accept_invitation(invitation_id)

        context = SessionContext.for_request(request)
        previous_user_id = context.user_id
        context.switch_user(user.id)

        inherited = bool(project.google_api_config)
        if inherited:
            context.google_config = GoogleApiConfig.from_dict(project.google_api_config)
            logger.info(f"Inherited Google configuration from project \"{project.name}\" for {user.email}")
        save_context(request, context, previous_user_id)

        return Response({
            'success': True,
            'message': 'Invitation accepted successfully',
            'projectId': project.id,
            'role': membership.role,
            'hasInheritedConfig': inherited,
        })
