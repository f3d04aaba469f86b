from django.db import models
from django.db.models import Q
from django.utils import timezone

from apps.projects.models import user_reference
from apps.users.models import generate_id


class ProjectMember(models.Model):
    """
    Links users to roles within a project.
    Membership is the only authorization fact for project-scoped operations.
    """
    class Role(models.TextChoices):
        OWNER = 'owner', 'Owner'          # Creator; full access, delete project
        ADMIN = 'admin', 'Admin'          # Full access, manage members
        MEMBER = 'member', 'Member'       # Tasks and comments

    id = models.CharField(max_length=64, primary_key=True, default=generate_id, editable=False)
    project = models.ForeignKey('projects.Project', on_delete=models.CASCADE, related_name='members')
    user = user_reference('project_memberships')
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(fields=['project', 'user'], name='unique_project_member'),
            models.UniqueConstraint(fields=['project'], condition=Q(role='owner'), name='one_owner_per_project'),
        ]

    def __str__(self):
        return f"{self.user_id} @ {self.project_id} ({self.get_role_display()})"

    @property
    def is_elevated(self) -> bool:
        return self.role in (self.Role.OWNER, self.Role.ADMIN)


class Invitation(models.Model):
    """Pending invitation for an e-mail address to join a project."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        ACCEPTED = 'accepted', 'Accepted'

    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        MEMBER = 'member', 'Member'

    id = models.CharField(max_length=64, primary_key=True, default=generate_id, editable=False)
    project = models.ForeignKey('projects.Project', on_delete=models.CASCADE, related_name='invitations')
    email = models.EmailField()
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MEMBER)
    inviter_name = models.CharField(max_length=255, blank=True)
    invited_by = user_reference('invitations_sent', null=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    created_at = models.DateTimeField(default=timezone.now)
    accepted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Invite: {self.email} as {self.get_role_display()}"
