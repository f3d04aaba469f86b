"""
API Views for the signed-in user.
"""
from rest_framework import generics, permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.projects.storage import current_month, storage
from .serializers import UsageSerializer, UserProfileSerializer


class ProfileView(generics.RetrieveUpdateAPIView):
    """Get or update current user's profile."""
    serializer_class = UserProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


class UsageView(APIView):
    """Current month's API usage. Advisory only."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        usage = storage.get_user_usage(request.user.id, current_month())
        return Response(UsageSerializer(usage).data)
