"""
API views for projects, tasks, comments, activities, stats, AI suggestions
and Drive documents.

Every view requires a signed-in session and a membership in the project it
touches. Task and comment routes authorize through the task's project.
"""
import logging

from django.conf import settings
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.google_auth.permissions import HasGoogleTokens
from apps.google_auth.services import DriveService
from apps.teams.permissions import (
    IsProjectMember,
    has_project_access,
    require_elevated_role,
    require_owner,
    require_project_access,
)
from .documents import export_project_document, import_project_document
from .exceptions import Conflict, EntityNotFound, ValidationError
from .models import Task
from .serializers import (
    ActivitySerializer,
    AiSuggestionSerializer,
    CommentInputSerializer,
    CommentSerializer,
    DriveImportInputSerializer,
    ProjectInputSerializer,
    ProjectSerializer,
    TaskInputSerializer,
    TaskSerializer,
    TaskSuggestionInputSerializer,
)
from .services import AIEngine
from .storage import storage

logger = logging.getLogger(__name__)


def get_task_for_member(task_id, user_id):
    task = storage.get_task(task_id)
    if task is None:
        raise EntityNotFound('Task not found')
    return task, require_project_access(task.project_id, user_id)


def validate_assignee(project_id, assignee_id):
    if assignee_id and has_project_access(project_id, assignee_id) is None:
        raise ValidationError('Assignee must be a project member', errors={'assigneeId': ['Not a project member.']})


def parse_limit(value, default=None):
    default = default or settings.DEFAULT_ACTIVITY_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return default
    return limit if limit > 0 else default


def ai_engine_for(request):
    config = request.auth.google_config
    return AIEngine(api_key=config.gemini_api_key if config else None)


# ----------------------------------------------------------------------
# Projects
# ----------------------------------------------------------------------
class ProjectListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        projects = storage.get_user_projects(request.user.id)
        return Response(ProjectSerializer(projects, many=True).data)

    def post(self, request):
        serializer = ProjectInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        config = request.auth.google_config
        project = storage.create_project(
            owner_id=request.user.id,
            google_api_config=config.to_dict() if config else None,
            **serializer.validated_data
        )
        storage.create_activity(
            project_id=project.id,
            activity_type='project_created',
            description=f"Created project \"{project.name}\"",
            user_id=request.user.id,
            entity_id=project.id,
        )
        storage.increment_usage(request.user.id, 'projects_created')
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)


class ProjectDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def get(self, request, project_id):
        return Response(ProjectSerializer(self.membership.project).data)

    def patch(self, request, project_id):
        require_elevated_role(self.membership)
        serializer = ProjectInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        project = storage.update_project(project_id, **serializer.validated_data)
        storage.create_activity(
            project_id=project_id,
            activity_type='project_updated',
            description=f"Updated project \"{project.name}\"",
            user_id=request.user.id,
            entity_id=project_id,
            metadata={'fields': sorted(serializer.validated_data)},
        )
        return Response(ProjectSerializer(project).data)

    def delete(self, request, project_id):
        require_owner(self.membership)
        storage.delete_project(project_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ----------------------------------------------------------------------
# Tasks and comments
# ----------------------------------------------------------------------
class TaskListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def get(self, request, project_id):
        tasks = storage.get_project_tasks(project_id)
        return Response(TaskSerializer(tasks, many=True).data)

    def post(self, request, project_id):
        serializer = TaskInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        validate_assignee(project_id, serializer.validated_data.get('assignee_id'))

        task = storage.create_task(project_id, request.user.id, **serializer.validated_data)
        storage.create_activity(
            project_id=project_id,
            activity_type='task_created',
            description=f"Created task \"{task.title}\"",
            user_id=request.user.id,
            entity_id=task.id,
        )
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)


class TaskDetailView(APIView):
    """PUT and PATCH are both partial updates."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, task_id):
        task, _ = get_task_for_member(task_id, request.user.id)
        return Response(TaskSerializer(task).data)

    def put(self, request, task_id):
        return self._update(request, task_id)

    def patch(self, request, task_id):
        return self._update(request, task_id)

    def delete(self, request, task_id):
        task, _ = get_task_for_member(task_id, request.user.id)
        storage.delete_task(task_id)
        storage.create_activity(
            project_id=task.project_id,
            activity_type='task_deleted',
            description=f"Deleted task \"{task.title}\"",
            user_id=request.user.id,
            entity_id=task_id,
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _update(self, request, task_id):
        task, _ = get_task_for_member(task_id, request.user.id)
        serializer = TaskInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)
        validate_assignee(task.project_id, changes.get('assignee_id'))

        old_status = task.status
        updated = storage.update_task(task_id, **changes)

        # Storage never records activities; status moves are logged here
        new_status = changes.get('status')
        if new_status and new_status != old_status:
            storage.create_activity(
                project_id=task.project_id,
                activity_type='task_status_changed',
                description=f"Moved \"{task.title}\" to {new_status.replace('_', ' ')}",
                user_id=request.user.id,
                entity_id=task_id,
                metadata={'oldStatus': old_status, 'newStatus': new_status},
            )
        return Response(TaskSerializer(updated).data)


class CommentListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, task_id):
        get_task_for_member(task_id, request.user.id)
        comments = storage.get_task_comments(task_id)
        return Response(CommentSerializer(comments, many=True).data)

    def post(self, request, task_id):
        task, _ = get_task_for_member(task_id, request.user.id)
        serializer = CommentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        comment = storage.create_comment(task_id, request.user.id, **serializer.validated_data)
        storage.create_activity(
            project_id=task.project_id,
            activity_type='comment_added',
            description=f"Commented on task \"{task.title}\"",
            user_id=request.user.id,
            entity_id=task_id,
        )
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


# ----------------------------------------------------------------------
# Activities and stats
# ----------------------------------------------------------------------
class ActivityListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def get(self, request, project_id):
        limit = parse_limit(request.query_params.get('limit'))
        activities = storage.get_project_activities(project_id, limit)
        return Response(ActivitySerializer(activities, many=True).data)


class ProjectStatsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def get(self, request, project_id):
        tasks = storage.get_project_tasks(project_id)
        members = storage.get_project_members(project_id)
        elevated = (Task.Priority.HIGH, Task.Priority.CRITICAL)

        return Response({
            'totalTasks': len(tasks),
            'todoTasks': sum(1 for t in tasks if t.status == Task.Status.TODO),
            'inProgressTasks': sum(1 for t in tasks if t.status == Task.Status.IN_PROGRESS),
            'completedTasks': sum(1 for t in tasks if t.status == Task.Status.DONE),
            'overdueTasks': sum(1 for t in tasks if t.is_overdue),
            'teamMembers': len(members),
            'highPriorityTasks': sum(1 for t in tasks if t.priority in elevated),
        })


# ----------------------------------------------------------------------
# AI suggestions
# ----------------------------------------------------------------------
class AiAnalyzeView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def post(self, request, project_id):
        engine = ai_engine_for(request)
        tasks = storage.get_project_tasks(project_id)
        analysis = engine.analyze_project(self.membership.project, tasks)
        storage.increment_usage(request.user.id, 'gemini_requests')

        suggestions = [
            storage.create_ai_suggestion(
                project_id=project_id,
                suggestion_type=item['type'],
                title=item['title'],
                description=item['description'],
                priority=item['priority'],
            )
            for item in analysis['suggestions']
        ]
        logger.info(f"AI analysis of project {project_id} produced {len(suggestions)} suggestion(s)")
        return Response({
            'summary': analysis['summary'],
            'suggestions': AiSuggestionSerializer(suggestions, many=True).data,
        })


class AiSuggestionListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def get(self, request, project_id):
        suggestions = storage.get_project_ai_suggestions(project_id)
        return Response(AiSuggestionSerializer(suggestions, many=True).data)


class AiSuggestionDismissView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, suggestion_id):
        suggestion = storage.get_ai_suggestion(suggestion_id)
        if suggestion is None:
            raise EntityNotFound('Suggestion not found')
        require_project_access(suggestion.project_id, request.user.id)

        suggestion = storage.dismiss_ai_suggestion(suggestion_id)
        return Response(AiSuggestionSerializer(suggestion).data)


class AiSuggestionApplyView(APIView):
    """Marks a suggestion applied; ``task`` suggestions also become a todo task."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, suggestion_id):
        suggestion = storage.get_ai_suggestion(suggestion_id)
        if suggestion is None:
            raise EntityNotFound('Suggestion not found')
        require_project_access(suggestion.project_id, request.user.id)
        if suggestion.applied:
            raise Conflict('Suggestion already applied')

        task = None
        if suggestion.type == 'task':
            task = storage.create_task(
                suggestion.project_id,
                request.user.id,
                title=suggestion.title,
                description=suggestion.description,
                priority=suggestion.priority,
            )
            storage.create_activity(
                project_id=suggestion.project_id,
                activity_type='task_created',
                description=f"Created task \"{task.title}\" from an AI suggestion",
                user_id=request.user.id,
                entity_id=task.id,
                metadata={'suggestionId': suggestion.id},
            )

        suggestion = storage.update_ai_suggestion(suggestion_id, applied=True)
        return Response({
            'suggestion': AiSuggestionSerializer(suggestion).data,
            'task': TaskSerializer(task).data if task else None,
        })


class AiTaskSuggestionView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = TaskSuggestionInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = require_project_access(serializer.validated_data['project_id'], request.user.id)

        engine = ai_engine_for(request)
        suggestion = engine.suggest_task_description(membership.project, serializer.validated_data['title'])
        storage.increment_usage(request.user.id, 'gemini_requests')
        return Response({'suggestion': suggestion})


# ----------------------------------------------------------------------
# Drive documents
# ----------------------------------------------------------------------
class ProjectDocumentView(APIView):
    """The project's Drive document, as it would be uploaded."""
    permission_classes = [permissions.IsAuthenticated, IsProjectMember]

    def get(self, request, project_id):
        return Response(export_project_document(self.membership.project))


class DriveSyncView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsProjectMember, HasGoogleTokens]

    def post(self, request, project_id):
        require_elevated_role(self.membership)
        project = self.membership.project

        file_id = project.drive_file_id
        if not file_id or file_id.startswith('temp-'):
            file_id = None

        drive = DriveService(request.auth.google_tokens.access_token)
        file_id = drive.save_document(f"{project.name}.projectflow.json", export_project_document(project), file_id)
        storage.update_project(project_id, drive_file_id=file_id)
        storage.increment_usage(request.user.id, 'google_drive_requests')

        logger.info(f"Project {project_id} synced to Drive file {file_id}")
        return Response({'success': True, 'driveFileId': file_id})


class DriveImportView(APIView):
    """
    Loads a project document from Drive and replaces the local copy with it.
    Overwriting a stored project needs the same role as syncing it.
    """
    permission_classes = [permissions.IsAuthenticated, HasGoogleTokens]

    def post(self, request):
        serializer = DriveImportInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        file_id = serializer.validated_data['file_id']

        drive = DriveService(request.auth.google_tokens.access_token)
        document = drive.load_document(file_id)
        storage.increment_usage(request.user.id, 'google_drive_requests')

        project_id = (document.get('project') or {}).get('id') if isinstance(document, dict) else None
        if project_id and storage.get_project(project_id):
            require_elevated_role(require_project_access(project_id, request.user.id))

        project = import_project_document(document, member_id=request.user.id)
        project = storage.update_project(project.id, drive_file_id=file_id)
        return Response(ProjectSerializer(project).data)
