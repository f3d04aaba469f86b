from datetime import timedelta

import pytest
from django.utils import timezone

from apps.projects.exceptions import Conflict, EntityNotFound, ValidationError
from apps.projects.models import Activity, Task
from apps.projects.storage import current_month, storage
from apps.teams.models import ProjectMember

pytestmark = pytest.mark.django_db


def test_create_project_makes_owner_member(owner):
    project = storage.create_project(owner.id, '  Launch  ')

    assert project.name == 'Launch'
    assert project.drive_file_id == f"temp-{project.id}"
    assert project.allowed_emails == [owner.email]
    assert project.color == '#7C3AED'

    members = storage.get_project_members(project.id)
    assert [(m.user_id, m.role) for m in members] == [(owner.id, ProjectMember.Role.OWNER)]


def test_create_project_requires_name(owner):
    with pytest.raises(ValidationError):
        storage.create_project(owner.id, '   ')


def test_user_projects_only_lists_memberships(owner, outsider, project):
    other = storage.create_project(outsider.id, 'Other')

    assert [p.id for p in storage.get_user_projects(owner.id)] == [project.id]
    assert [p.id for p in storage.get_user_projects(outsider.id)] == [other.id]


def test_update_project_rejects_unknown_fields(project):
    with pytest.raises(ValidationError):
        storage.update_project(project.id, owner_id='someone-else')


def test_update_missing_project(db):
    with pytest.raises(EntityNotFound):
        storage.update_project('missing', name='x')


def test_duplicate_member_conflicts(project, outsider):
    storage.add_project_member(project.id, outsider.id)

    with pytest.raises(Conflict):
        storage.add_project_member(project.id, outsider.id)

    member, created = storage.ensure_project_member(project.id, outsider.id, ProjectMember.Role.ADMIN)
    assert not created
    assert member.role == ProjectMember.Role.MEMBER


def test_owner_cannot_be_removed(project, owner):
    with pytest.raises(ValidationError):
        storage.remove_project_member(project.id, owner.id)


def test_tasks_with_unknown_creator_are_left_out(project, owner):
    kept = storage.create_task(project.id, owner.id, title='Write copy')
    storage.create_task(project.id, 'ghost-user', title='Orphan')

    tasks = storage.get_project_tasks(project.id)

    assert [t.id for t in tasks] == [kept.id]
    assert tasks[0].created_by == owner
    assert tasks[0].assignee is None


def test_update_task_is_partial(project, owner):
    task = storage.create_task(project.id, owner.id, title='Design', priority=Task.Priority.HIGH)

    updated = storage.update_task(task.id, status=Task.Status.IN_PROGRESS)

    assert updated.status == Task.Status.IN_PROGRESS
    assert updated.priority == Task.Priority.HIGH
    assert updated.title == 'Design'


def test_deleting_project_cascades(project, owner):
    task = storage.create_task(project.id, owner.id, title='Design')
    storage.create_comment(task.id, owner.id, 'Looks good')
    storage.create_activity(project.id, 'task_created', 'Created task')

    storage.delete_project(project.id)

    assert storage.get_task(task.id) is None
    assert not Activity.objects.filter(project_id=project.id).exists()
    assert not ProjectMember.objects.filter(project_id=project.id).exists()


def test_comments_in_creation_order_without_orphans(project, owner):
    task = storage.create_task(project.id, owner.id, title='Design')
    first = storage.create_comment(task.id, owner.id, 'First')
    storage.create_comment(task.id, 'ghost-user', 'Lost')
    second = storage.create_comment(task.id, owner.id, 'Second')

    assert [c.id for c in storage.get_task_comments(task.id)] == [first.id, second.id]


def test_activities_newest_first_and_limited(project):
    now = timezone.now()
    for minutes in range(25):
        activity = storage.create_activity(project.id, 'task_created', f"Activity {minutes}")
        Activity.objects.filter(pk=activity.pk).update(created_at=now - timedelta(minutes=minutes))

    default = storage.get_project_activities(project.id)
    limited = storage.get_project_activities(project.id, limit=5)

    assert len(default) == 20
    assert [a.description for a in limited] == [f"Activity {i}" for i in range(5)]


def test_activities_created_together_keep_a_stable_order(project):
    now = timezone.now()
    for name in ('first', 'second', 'third'):
        storage.create_activity(project.id, 'task_created', name)
    Activity.objects.filter(project=project).update(created_at=now)

    listed = [a.id for a in storage.get_project_activities(project.id)]

    assert listed == sorted(listed, reverse=True)
    assert [a.id for a in storage.get_project_activities(project.id)] == listed
    assert [a.id for a in storage.get_project_activities(project.id, limit=2)] == listed[:2]


def test_activity_with_unknown_user_is_kept(project):
    storage.create_activity(project.id, 'member_added', 'Invited someone', user_id='ghost-user')

    activities = storage.get_project_activities(project.id)

    assert len(activities) == 1
    assert activities[0].user is None


def test_dismissed_suggestions_are_hidden(project):
    kept = storage.create_ai_suggestion(project.id, 'task', 'Add tests')
    dismissed = storage.create_ai_suggestion(project.id, 'risk', 'Deadline risk')

    storage.dismiss_ai_suggestion(dismissed.id)

    assert [s.id for s in storage.get_project_ai_suggestions(project.id)] == [kept.id]


def test_invitation_accepts_exactly_once(project, owner):
    invitation = storage.create_invitation(project.id, 'new@example.com', 'member', 'Olivia', owner.id)

    assert storage.mark_invitation_accepted(invitation.id)
    assert not storage.mark_invitation_accepted(invitation.id)


def test_usage_counters(owner):
    storage.increment_usage(owner.id, 'gemini_requests')
    storage.increment_usage(owner.id, 'gemini_requests', amount=2)

    usage = storage.get_user_usage(owner.id)
    assert usage.month == current_month()
    assert usage.gemini_requests == 3

    with pytest.raises(ValidationError):
        storage.increment_usage(owner.id, 'unknown_counter')


def test_upsert_user_matches_email_case_insensitively(owner):
    user = storage.upsert_user({'email': 'OWNER@example.com', 'last_name': 'Stone'})

    assert user.id == owner.id
    assert user.last_name == 'Stone'


def test_seeded_plans(db):
    plans = storage.get_subscription_plans()

    assert [p.id for p in plans] == ['free', 'managed_api', 'premium']
    assert plans[0].is_free
