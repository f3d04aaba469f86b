"""
Drive document codec.

A project is stored in Drive as a single JSON document::

    {"project": {...}, "tasks": [...], "members": [...], "comments": [...],
     "activities": [...], "aiSuggestions": [...]}

Records use the same camelCase shape as the API without joined users. The
project's credential bundle is never written to Drive.
"""
import logging

from django.db import IntegrityError, transaction

from apps.teams.models import ProjectMember
from .exceptions import AccessDenied, ValidationError
from .models import Activity, AiSuggestion, Comment, Project, Task
from .serializers import (
    ActivityRecordSerializer,
    AiSuggestionSerializer,
    CommentRecordSerializer,
    ProjectMemberRecordSerializer,
    ProjectRecordSerializer,
    TaskRecordSerializer,
)

logger = logging.getLogger(__name__)

DOCUMENT_SECTIONS = {
    'tasks': (Task, TaskRecordSerializer),
    'members': (ProjectMember, ProjectMemberRecordSerializer),
    'comments': (Comment, CommentRecordSerializer),
    'activities': (Activity, ActivityRecordSerializer),
    'aiSuggestions': (AiSuggestion, AiSuggestionSerializer),
}


def export_project_document(project):
    return {
        'project': ProjectRecordSerializer(project).data,
        'tasks': TaskRecordSerializer(project.tasks.order_by('position', 'created_at', 'id'), many=True).data,
        'members': ProjectMemberRecordSerializer(project.members.order_by('joined_at', 'id'), many=True).data,
        'comments': CommentRecordSerializer(
            Comment.objects.filter(task__project=project).order_by('created_at', 'id'), many=True
        ).data,
        'activities': ActivityRecordSerializer(project.activities.order_by('created_at', 'id'), many=True).data,
        'aiSuggestions': AiSuggestionSerializer(project.ai_suggestions.order_by('created_at', 'id'), many=True).data,
    }


def _validated(serializer_class, data, label):
    serializer = serializer_class(data=data, many=isinstance(data, list))
    if not serializer.is_valid():
        raise ValidationError(f"Invalid project document: bad {label}", errors={label: serializer.errors})
    return serializer.validated_data


def _check_document(project_fields, sections):
    project_id = project_fields['id']
    task_ids = {task['id'] for task in sections['tasks']}

    for label in ('tasks', 'members', 'activities', 'aiSuggestions'):
        if any(record['project_id'] != project_id for record in sections[label]):
            raise ValidationError(f"Invalid project document: {label} belong to another project")

    if any(comment['task_id'] not in task_ids for comment in sections['comments']):
        raise ValidationError('Invalid project document: comment references an unknown task')

    owners = [member for member in sections['members'] if member['role'] == ProjectMember.Role.OWNER]
    if len(owners) != 1:
        raise ValidationError('Invalid project document: exactly one owner is required')
    if owners[0]['user_id'] != project_fields['owner_id']:
        raise ValidationError('Invalid project document: the owner membership does not match the project owner')

    user_ids = [member['user_id'] for member in sections['members']]
    if len(user_ids) != len(set(user_ids)):
        raise ValidationError('Invalid project document: duplicate membership')


def parse_project_document(data):
    """Validate a document and return ``(project_fields, sections)`` in snake_case."""
    if not isinstance(data, dict):
        raise ValidationError('Invalid project document')
    missing = [key for key in ['project', *DOCUMENT_SECTIONS] if key not in data]
    if missing:
        raise ValidationError('Invalid project document', errors={key: ['This field is required.'] for key in missing})

    project_fields = _validated(ProjectRecordSerializer, data['project'], 'project')
    sections = {}
    for label, (_, serializer_class) in DOCUMENT_SECTIONS.items():
        if not isinstance(data[label], list):
            raise ValidationError(f"Invalid project document: {label} must be a list")
        sections[label] = _validated(serializer_class, data[label], label)

    _check_document(project_fields, sections)
    return project_fields, sections


def import_project_document(data, google_api_config=None, member_id=None):
    """
    Replace the stored graph of the document's project with the document's
    content, preserving ids and field values. Runs in one transaction.

    When ``member_id`` is given the document must list that user as a member.
    A stored project keeps its owner: documents naming another owner are refused.
    """
    project_fields, sections = parse_project_document(data)
    project_id = project_fields['id']

    if member_id is not None and not any(m['user_id'] == member_id for m in sections['members']):
        raise AccessDenied('You are not a member of this project')

    try:
        with transaction.atomic():
            existing = Project.objects.select_for_update().filter(pk=project_id).first()
            if existing is not None and existing.owner_id != project_fields['owner_id']:
                raise AccessDenied('A project document cannot change the project owner')
            if google_api_config is None and existing is not None:
                google_api_config = existing.google_api_config
            if existing is not None:
                existing.delete()

            project = Project.objects.create(google_api_config=google_api_config, **project_fields)
            for label, (model, _) in DOCUMENT_SECTIONS.items():
                model.objects.bulk_create([model(**fields) for fields in sections[label]])
    except IntegrityError as e:
        logger.warning(f"Project document {project_id} conflicts with stored records: {e}")
        raise ValidationError('Project document conflicts with existing records')

    logger.info(f"Imported project document {project_id} ({len(sections['tasks'])} tasks)")
    return project
