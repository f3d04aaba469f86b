"""
Core models for projects, tasks and their audit trail.

A Project owns its tasks, activities and AI suggestions; a Task owns its
comments. Deletion cascades along those edges. Users are only referenced:
user foreign keys carry no database constraint and never cascade, so a
project graph loaded from a Drive document may point at users this store has
not seen yet.
"""
from django.conf import settings
from django.core.validators import MaxValueValidator
from django.db import models
from django.utils import timezone

from apps.users.models import generate_id


def user_reference(related_name, null=False):
    return models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=null,
        blank=null,
        related_name=related_name,
    )


class Project(models.Model):
    id = models.CharField(max_length=64, primary_key=True, default=generate_id, editable=False)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    owner = user_reference('owned_projects')
    color = models.CharField(max_length=20, default='#7C3AED')
    drive_file_id = models.CharField(max_length=255, blank=True, help_text="Google Drive file holding the project document")
    allowed_emails = models.JSONField(default=list, blank=True, help_text="E-mails permitted to join")
    google_api_config = models.JSONField(null=True, blank=True, help_text="Owner's credential bundle, inherited by members")

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class Task(models.Model):

    class Status(models.TextChoices):
        TODO = 'todo', 'To Do'
        IN_PROGRESS = 'in_progress', 'In Progress'
        DONE = 'done', 'Done'

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'
        CRITICAL = 'critical', 'Critical'

    id = models.CharField(max_length=64, primary_key=True, default=generate_id, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.TODO)
    priority = models.CharField(max_length=20, choices=Priority.choices, default=Priority.MEDIUM)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='tasks')
    assignee = user_reference('assigned_tasks', null=True)
    created_by = user_reference('created_tasks')
    due_date = models.DateTimeField(null=True, blank=True)
    progress = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    position = models.FloatField(default=0, help_text="Ordering hint within a board column")

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['position', 'created_at']

    def __str__(self):
        return self.title

    @property
    def is_overdue(self) -> bool:
        return bool(self.due_date) and self.due_date < timezone.now() and self.status != self.Status.DONE


class Comment(models.Model):
    id = models.CharField(max_length=64, primary_key=True, default=generate_id, editable=False)
    content = models.TextField()
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='comments')
    author = user_reference('comments')
    mentions = models.JSONField(default=list, blank=True)
    attachments = models.JSONField(default=list, blank=True)
    task_links = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"Comment by {self.author_id} on {self.task_id}"


class Activity(models.Model):
    """Append-only audit entry. ``type`` is a free-form tag such as ``task_created``."""

    id = models.CharField(max_length=64, primary_key=True, default=generate_id, editable=False)
    type = models.CharField(max_length=50)
    description = models.TextField()
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='activities')
    user = user_reference('activities', null=True)
    entity_id = models.CharField(max_length=255, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'Activities'

    def __str__(self):
        return f"{self.type}: {self.description}"


class AiSuggestion(models.Model):

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'

    id = models.CharField(max_length=64, primary_key=True, default=generate_id, editable=False)
    type = models.CharField(max_length=50)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='ai_suggestions')
    priority = models.CharField(max_length=20, choices=Priority.choices, default=Priority.MEDIUM)
    applied = models.BooleanField(default=False)
    dismissed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'AI Suggestion'
        verbose_name_plural = 'AI Suggestions'

    def __str__(self):
        return self.title
