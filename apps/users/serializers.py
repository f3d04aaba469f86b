"""
Serializers for User and usage records. JSON keys are camelCase.
"""
from rest_framework import serializers
from django.contrib.auth import get_user_model

from .models import UsageTracking

User = get_user_model()


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user joined onto tasks, members, comments and activities."""
    firstName = serializers.CharField(source='first_name', read_only=True)
    lastName = serializers.CharField(source='last_name', read_only=True)
    profileImageUrl = serializers.CharField(source='profile_image_url', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'firstName', 'lastName', 'profileImageUrl']


class UserProfileSerializer(serializers.ModelSerializer):
    """Serializer for the signed-in user's profile."""
    firstName = serializers.CharField(source='first_name', required=False, allow_blank=True, max_length=150)
    lastName = serializers.CharField(source='last_name', required=False, allow_blank=True, max_length=150)
    profileImageUrl = serializers.URLField(source='profile_image_url', required=False, allow_blank=True)
    subscriptionTier = serializers.CharField(source='subscription_tier', read_only=True)
    subscriptionStatus = serializers.SerializerMethodField()
    subscriptionExpiry = serializers.DateTimeField(source='subscription_expiry', read_only=True)
    hasGoogleApiConfig = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'firstName', 'lastName', 'profileImageUrl',
            'subscriptionTier', 'subscriptionStatus', 'subscriptionExpiry',
            'hasGoogleApiConfig', 'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id', 'email']

    def get_subscriptionStatus(self, obj):
        return obj.subscription_status or None

    def get_hasGoogleApiConfig(self, obj) -> bool:
        return bool(obj.google_api_config)


class UsageSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source='user_id', read_only=True)
    googleDriveRequests = serializers.IntegerField(source='google_drive_requests', read_only=True)
    geminiRequests = serializers.IntegerField(source='gemini_requests', read_only=True)
    projectsCreated = serializers.IntegerField(source='projects_created', read_only=True)
    storageUsed = serializers.IntegerField(source='storage_used', read_only=True)

    class Meta:
        model = UsageTracking
        fields = ['userId', 'month', 'googleDriveRequests', 'geminiRequests', 'projectsCreated', 'storageUsed']
