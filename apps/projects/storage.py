"""
Repository for every ProjectFlow entity.

``storage`` is the only code that reads or writes users, projects, members,
tasks, comments, activities, AI suggestions, invitations, usage and plans.
Getters return ``None`` for unknown ids; updates and deletes raise
``EntityNotFound``. Storage never writes activities on its own: handlers
decide what is worth recording.

User references are joined with ``prefetch_related`` so that a record pointing
at an unknown user resolves to ``None`` instead of dropping out of the query.
Tasks and comments whose creator/author cannot be resolved are then left out of
listings; members keep a ``None`` user.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.payments.models import SubscriptionPlan
from apps.teams.models import Invitation, ProjectMember
from apps.users.models import UsageTracking
from .exceptions import Conflict, EntityNotFound, ValidationError
from .models import Activity, AiSuggestion, Comment, Project, Task

logger = logging.getLogger(__name__)

User = get_user_model()

PROJECT_FIELDS = {'name', 'description', 'color', 'drive_file_id', 'allowed_emails', 'google_api_config'}
TASK_FIELDS = {'title', 'description', 'status', 'priority', 'assignee_id', 'due_date', 'progress', 'position'}
SUGGESTION_FIELDS = {'type', 'title', 'description', 'priority', 'applied', 'dismissed_at'}
USER_FIELDS = {'email', 'first_name', 'last_name', 'profile_image_url', 'google_api_config'}
USAGE_COUNTERS = {'google_drive_requests', 'gemini_requests', 'projects_created', 'storage_used'}


def current_month():
    return timezone.now().strftime('%Y-%m')


def _resolved(instance, field_name):
    # A user FK whose row is missing raises RelatedObjectDoesNotExist (an AttributeError)
    return getattr(instance, field_name, None)


def _apply_changes(instance, changes, allowed):
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
    for field, value in changes.items():
        setattr(instance, field, value)


class ProjectStorage:

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def get_user(self, user_id):
        return User.objects.filter(pk=user_id).first()

    def get_user_by_email(self, email):
        return User.objects.filter(email__iexact=email).first()

    @transaction.atomic
    def upsert_user(self, data):
        """Insert or update a user by ``id`` (or by e-mail when no id is given)."""
        email = data.get('email')
        if not email:
            raise ValidationError('E-mail is required', errors={'email': ['This field is required.']})

        user = None
        if data.get('id'):
            user = User.objects.select_for_update().filter(pk=data['id']).first()
        if user is None:
            user = User.objects.select_for_update().filter(email__iexact=email).first()

        fields = {key: value for key, value in data.items() if key in USER_FIELDS and value is not None}
        if user is None:
            user = User(username=email, **fields)
            if data.get('id'):
                user.id = data['id']
            user.set_unusable_password()
            user.save()
            logger.info(f"Created user {user.id} ({email})")
        else:
            for field, value in fields.items():
                setattr(user, field, value)
            user.save()
        return user

    def get_or_create_user_by_email(self, email):
        user = self.get_user_by_email(email)
        if user is None:
            user = self.upsert_user({
                'email': email,
                'first_name': email.split('@')[0],
                'last_name': '',
            })
        return user

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def create_project(self, owner_id, name, description='', color=None,
                       allowed_emails=None, google_api_config=None):
        """
        Create a project and its owner membership in one transaction.

        ``allowed_emails`` defaults to the owner's e-mail and ``drive_file_id``
        holds a ``temp-<id>`` placeholder until the first Drive sync.
        """
        if not name or not name.strip():
            raise ValidationError('Project name is required', errors={'name': ['This field is required.']})

        owner = self.get_user(owner_id)
        if owner is None:
            raise EntityNotFound('User not found')

        with transaction.atomic():
            project = Project(
                owner_id=owner_id,
                name=name.strip(),
                description=description or '',
                color=color or settings.DEFAULT_PROJECT_COLOR,
                allowed_emails=list(allowed_emails) if allowed_emails else [owner.email],
                google_api_config=google_api_config,
            )
            project.drive_file_id = f"temp-{project.id}"
            project.save()
            ProjectMember.objects.create(project=project, user_id=owner_id, role=ProjectMember.Role.OWNER)

        logger.info(f"Project {project.id} \"{project.name}\" created by {owner_id}")
        return project

    def get_project(self, project_id):
        return Project.objects.filter(pk=project_id).first()

    def get_user_projects(self, user_id):
        return list(Project.objects.filter(members__user_id=user_id).distinct())

    def update_project(self, project_id, **changes):
        with transaction.atomic():
            project = Project.objects.select_for_update().filter(pk=project_id).first()
            if project is None:
                raise EntityNotFound('Project not found')
            _apply_changes(project, changes, PROJECT_FIELDS)
            project.updated_at = timezone.now()
            project.save()
        return project

    def delete_project(self, project_id):
        deleted, _ = Project.objects.filter(pk=project_id).delete()
        if not deleted:
            raise EntityNotFound('Project not found')
        logger.info(f"Project {project_id} deleted")

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------
    def add_project_member(self, project_id, user_id, role=ProjectMember.Role.MEMBER):
        try:
            with transaction.atomic():
                member = ProjectMember.objects.create(project_id=project_id, user_id=user_id, role=role)
        except IntegrityError:
            raise Conflict('User is already a member of this project')
        logger.info(f"Added {user_id} to project {project_id} as {role}")
        return member

    def ensure_project_member(self, project_id, user_id, role=ProjectMember.Role.MEMBER):
        """Idempotent: returns ``(member, created)`` and never duplicates a membership."""
        return ProjectMember.objects.get_or_create(
            project_id=project_id, user_id=user_id, defaults={'role': role}
        )

    def get_project_members(self, project_id):
        return list(ProjectMember.objects.filter(project_id=project_id).prefetch_related('user'))

    def get_user_project_role(self, project_id, user_id):
        return ProjectMember.objects.filter(project_id=project_id, user_id=user_id).first()

    def remove_project_member(self, project_id, user_id):
        member = self.get_user_project_role(project_id, user_id)
        if member is None:
            raise EntityNotFound('Member not found')
        if member.role == ProjectMember.Role.OWNER:
            raise ValidationError('The project owner cannot be removed')
        member.delete()
        logger.info(f"Removed {user_id} from project {project_id}")

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def create_task(self, project_id, created_by_id, **fields):
        if not (fields.get('title') or '').strip():
            raise ValidationError('Task title is required', errors={'title': ['This field is required.']})
        unknown = set(fields) - TASK_FIELDS
        if unknown:
            raise ValidationError(f"Unknown task field(s): {', '.join(sorted(unknown))}")

        task = Task.objects.create(project_id=project_id, created_by_id=created_by_id, **fields)
        logger.info(f"Task {task.id} created in project {project_id}")
        return task

    def get_task(self, task_id):
        return Task.objects.filter(pk=task_id).first()

    def get_project_tasks(self, project_id):
        tasks = Task.objects.filter(project_id=project_id).prefetch_related('assignee', 'created_by')
        return [task for task in tasks if _resolved(task, 'created_by') is not None]

    def update_task(self, task_id, **changes):
        """Partial update; unspecified fields keep their values."""
        with transaction.atomic():
            task = Task.objects.select_for_update().filter(pk=task_id).first()
            if task is None:
                raise EntityNotFound('Task not found')
            _apply_changes(task, changes, TASK_FIELDS)
            task.updated_at = timezone.now()
            task.save()
        return task

    def delete_task(self, task_id):
        deleted, _ = Task.objects.filter(pk=task_id).delete()
        if not deleted:
            raise EntityNotFound('Task not found')

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------
    def create_comment(self, task_id, author_id, content, mentions=None, attachments=None, task_links=None):
        if not content or not content.strip():
            raise ValidationError('Comment content is required', errors={'content': ['This field is required.']})
        return Comment.objects.create(
            task_id=task_id,
            author_id=author_id,
            content=content.strip(),
            mentions=mentions or [],
            attachments=attachments or [],
            task_links=task_links or [],
        )

    def get_task_comments(self, task_id):
        comments = Comment.objects.filter(task_id=task_id).prefetch_related('author').order_by('created_at', 'id')
        return [comment for comment in comments if _resolved(comment, 'author') is not None]

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------
    def create_activity(self, project_id, activity_type, description, user_id=None, entity_id='', metadata=None):
        return Activity.objects.create(
            project_id=project_id,
            type=activity_type,
            description=description,
            user_id=user_id,
            entity_id=entity_id or '',
            metadata=metadata or {},
        )

    def get_project_activities(self, project_id, limit=None):
        limit = limit or settings.DEFAULT_ACTIVITY_LIMIT
        activities = (
            Activity.objects.filter(project_id=project_id)
            .prefetch_related('user')
            .order_by('-created_at', '-id')[:limit]
        )
        return list(activities)

    # ------------------------------------------------------------------
    # AI suggestions
    # ------------------------------------------------------------------
    def create_ai_suggestion(self, project_id, suggestion_type, title, description='',
                             priority=AiSuggestion.Priority.MEDIUM):
        return AiSuggestion.objects.create(
            project_id=project_id,
            type=suggestion_type,
            title=title,
            description=description or '',
            priority=priority,
        )

    def get_ai_suggestion(self, suggestion_id):
        return AiSuggestion.objects.filter(pk=suggestion_id).first()

    def get_project_ai_suggestions(self, project_id):
        return list(
            AiSuggestion.objects.filter(project_id=project_id, dismissed_at__isnull=True)
            .order_by('-created_at', '-id')
        )

    def update_ai_suggestion(self, suggestion_id, **changes):
        with transaction.atomic():
            suggestion = AiSuggestion.objects.select_for_update().filter(pk=suggestion_id).first()
            if suggestion is None:
                raise EntityNotFound('Suggestion not found')
            _apply_changes(suggestion, changes, SUGGESTION_FIELDS)
            suggestion.save()
        return suggestion

    def dismiss_ai_suggestion(self, suggestion_id):
        return self.update_ai_suggestion(suggestion_id, dismissed_at=timezone.now())

    # ------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------
    def create_invitation(self, project_id, email, role, inviter_name='', invited_by_id=None):
        return Invitation.objects.create(
            project_id=project_id,
            email=email,
            role=role,
            inviter_name=inviter_name,
            invited_by_id=invited_by_id,
        )

    def get_invitation(self, invitation_id):
        return Invitation.objects.filter(pk=invitation_id).first()

    def mark_invitation_accepted(self, invitation_id):
        """
        Flip a pending invitation to accepted. Returns False when another
        request already did, so exactly one caller wins.
        """
        updated = Invitation.objects.filter(pk=invitation_id, status=Invitation.Status.PENDING).update(
            status=Invitation.Status.ACCEPTED,
            accepted_at=timezone.now(),
        )
        return updated == 1

    # ------------------------------------------------------------------
    # Subscription and usage
    # ------------------------------------------------------------------
    def update_user_subscription(self, user_id, tier, status=None, expiry=None, **extra):
        with transaction.atomic():
            user = User.objects.select_for_update().filter(pk=user_id).first()
            if user is None:
                raise EntityNotFound('User not found')
            user.subscription_tier = tier
            user.subscription_status = status or ''
            user.subscription_expiry = expiry
            for field in ('google_pay_subscription_id', 'stripe_customer_id'):
                if field in extra:
                    setattr(user, field, extra[field])
            user.save()
        logger.info(f"User {user_id} moved to {tier} ({status})")
        return user

    def get_user_usage(self, user_id, month=None):
        usage, _ = UsageTracking.objects.get_or_create(user_id=user_id, month=month or current_month())
        return usage

    def update_usage(self, user_id, month=None, **counters):
        unknown = set(counters) - USAGE_COUNTERS
        if unknown:
            raise ValidationError(f"Unknown usage counter(s): {', '.join(sorted(unknown))}")
        usage = self.get_user_usage(user_id, month)
        for field, value in counters.items():
            setattr(usage, field, value)
        usage.save()
        return usage

    def increment_usage(self, user_id, counter, amount=1, month=None):
        if counter not in USAGE_COUNTERS:
            raise ValidationError(f"Unknown usage counter: {counter}")
        usage = self.get_user_usage(user_id, month)
        UsageTracking.objects.filter(pk=usage.pk).update(**{counter: F(counter) + amount})

    def get_subscription_plans(self):
        return list(SubscriptionPlan.objects.filter(is_active=True))

    def get_subscription_plan(self, plan_id):
        return SubscriptionPlan.objects.filter(pk=plan_id, is_active=True).first()


storage = ProjectStorage()
