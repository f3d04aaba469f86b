from rest_framework import serializers

from .models import Invitation


class InviteMemberSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=Invitation.Role.choices, default=Invitation.Role.MEMBER)


class InvitationSerializer(serializers.ModelSerializer):
    projectId = serializers.CharField(source='project_id', read_only=True)
    projectName = serializers.CharField(source='project.name', read_only=True)
    inviterName = serializers.CharField(source='inviter_name', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    acceptedAt = serializers.DateTimeField(source='accepted_at', read_only=True)

    class Meta:
        model = Invitation
        fields = ['id', 'projectId', 'projectName', 'inviterName', 'role', 'email', 'status',
                  'createdAt', 'acceptedAt']
