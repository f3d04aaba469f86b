"""
Serializers for projects, tasks, comments, activities and AI suggestions.

``*RecordSerializer`` classes are the flat camelCase records stored in the
Drive document (ids and timestamps writable so a document can be re-imported
as-is). The API serializers extend them with joined users. Input serializers
validate request bodies and yield snake_case ``validated_data`` for storage.
"""
from rest_framework import serializers

from apps.teams.models import ProjectMember
from apps.users.serializers import UserSummarySerializer
from .models import Activity, AiSuggestion, Comment, Project, Task

HEX_COLOR = r'^#[0-9A-Fa-f]{6}$'


class ProjectRecordSerializer(serializers.ModelSerializer):
    id = serializers.CharField(max_length=64)
    ownerId = serializers.CharField(source='owner_id', max_length=255)
    driveFileId = serializers.CharField(source='drive_file_id', allow_blank=True, max_length=255)
    allowedEmails = serializers.ListField(source='allowed_emails', child=serializers.EmailField(), allow_empty=True)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Project
        fields = ['id', 'name', 'description', 'ownerId', 'color', 'driveFileId',
                  'allowedEmails', 'createdAt', 'updatedAt']


class ProjectSerializer(ProjectRecordSerializer):
    hasGoogleApiConfig = serializers.SerializerMethodField()

    class Meta(ProjectRecordSerializer.Meta):
        fields = ProjectRecordSerializer.Meta.fields + ['hasGoogleApiConfig']

    def get_hasGoogleApiConfig(self, obj) -> bool:
        return bool(obj.google_api_config)


class ProjectMemberRecordSerializer(serializers.ModelSerializer):
    id = serializers.CharField(max_length=64)
    projectId = serializers.CharField(source='project_id')
    userId = serializers.CharField(source='user_id', max_length=255)
    joinedAt = serializers.DateTimeField(source='joined_at')

    class Meta:
        model = ProjectMember
        fields = ['id', 'projectId', 'userId', 'role', 'joinedAt']


class ProjectMemberSerializer(ProjectMemberRecordSerializer):
    user = UserSummarySerializer(read_only=True, allow_null=True)

    class Meta(ProjectMemberRecordSerializer.Meta):
        fields = ProjectMemberRecordSerializer.Meta.fields + ['user']


class TaskRecordSerializer(serializers.ModelSerializer):
    id = serializers.CharField(max_length=64)
    projectId = serializers.CharField(source='project_id')
    assigneeId = serializers.CharField(source='assignee_id', allow_null=True, required=False, max_length=255)
    createdById = serializers.CharField(source='created_by_id', max_length=255)
    dueDate = serializers.DateTimeField(source='due_date', allow_null=True, required=False)
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Task
        fields = ['id', 'title', 'description', 'status', 'priority', 'projectId', 'assigneeId',
                  'createdById', 'dueDate', 'progress', 'position', 'createdAt', 'updatedAt']


class TaskSerializer(TaskRecordSerializer):
    assignee = UserSummarySerializer(read_only=True, allow_null=True)
    createdBy = UserSummarySerializer(source='created_by', read_only=True, allow_null=True)

    class Meta(TaskRecordSerializer.Meta):
        fields = TaskRecordSerializer.Meta.fields + ['assignee', 'createdBy']


class CommentRecordSerializer(serializers.ModelSerializer):
    id = serializers.CharField(max_length=64)
    taskId = serializers.CharField(source='task_id')
    authorId = serializers.CharField(source='author_id', max_length=255)
    taskLinks = serializers.JSONField(source='task_links')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Comment
        fields = ['id', 'content', 'taskId', 'authorId', 'mentions', 'attachments', 'taskLinks', 'createdAt']


class CommentSerializer(CommentRecordSerializer):
    author = UserSummarySerializer(read_only=True, allow_null=True)

    class Meta(CommentRecordSerializer.Meta):
        fields = CommentRecordSerializer.Meta.fields + ['author']


class ActivityRecordSerializer(serializers.ModelSerializer):
    id = serializers.CharField(max_length=64)
    projectId = serializers.CharField(source='project_id')
    userId = serializers.CharField(source='user_id', allow_null=True, required=False, max_length=255)
    entityId = serializers.CharField(source='entity_id', allow_blank=True, required=False, max_length=255)
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Activity
        fields = ['id', 'type', 'description', 'projectId', 'userId', 'entityId', 'metadata', 'createdAt']


class ActivitySerializer(ActivityRecordSerializer):
    user = UserSummarySerializer(read_only=True, allow_null=True)

    class Meta(ActivityRecordSerializer.Meta):
        fields = ActivityRecordSerializer.Meta.fields + ['user']


class AiSuggestionSerializer(serializers.ModelSerializer):
    id = serializers.CharField(max_length=64)
    projectId = serializers.CharField(source='project_id')
    dismissedAt = serializers.DateTimeField(source='dismissed_at', allow_null=True, required=False)
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = AiSuggestion
        fields = ['id', 'type', 'title', 'description', 'projectId', 'priority',
                  'applied', 'dismissedAt', 'createdAt']


# ----------------------------------------------------------------------
# Request bodies
# ----------------------------------------------------------------------
class ProjectInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True)
    color = serializers.RegexField(HEX_COLOR, required=False)
    allowedEmails = serializers.ListField(
        source='allowed_emails', child=serializers.EmailField(), required=False, allow_empty=True
    )


class TaskInputSerializer(serializers.Serializer):
    """Used with ``partial=True`` for updates."""
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Task.Status.choices, required=False)
    priority = serializers.ChoiceField(choices=Task.Priority.choices, required=False)
    assigneeId = serializers.CharField(source='assignee_id', required=False, allow_null=True, max_length=255)
    dueDate = serializers.DateTimeField(source='due_date', required=False, allow_null=True)
    progress = serializers.IntegerField(required=False, min_value=0, max_value=100)
    position = serializers.FloatField(required=False)


class CommentInputSerializer(serializers.Serializer):
    content = serializers.CharField()
    mentions = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    attachments = serializers.ListField(child=serializers.JSONField(), required=False, default=list)
    taskLinks = serializers.ListField(source='task_links', child=serializers.CharField(), required=False, default=list)


class TaskSuggestionInputSerializer(serializers.Serializer):
    projectId = serializers.CharField(source='project_id')
    title = serializers.CharField(max_length=255)


class DriveImportInputSerializer(serializers.Serializer):
    fileId = serializers.CharField(source='file_id', max_length=255)
