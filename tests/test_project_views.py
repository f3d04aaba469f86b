from datetime import timedelta
from unittest.mock import patch

import pytest
from django.urls import reverse
from django.utils import timezone

from apps.projects.models import Activity, Task
from apps.projects.storage import storage
from apps.teams.models import ProjectMember

pytestmark = pytest.mark.django_db


@pytest.fixture
def member(make_user, project):
    user = make_user('member@example.com', 'Max')
    storage.add_project_member(project.id, user.id)
    return user


def test_create_project_records_activity_and_usage(login, owner, google_config):
    client = login(owner)

    response = client.post(reverse('projects:project-list'), {'name': 'Mobile App', 'color': '#112233'})

    assert response.status_code == 201
    assert response.data['name'] == 'Mobile App'
    assert response.data['ownerId'] == owner.id
    assert response.data['hasGoogleApiConfig'] is True
    assert 'googleApiConfig' not in response.data

    project_id = response.data['id']
    assert storage.get_project(project_id).google_api_config == google_config.to_dict()
    activities = storage.get_project_activities(project_id)
    assert [a.type for a in activities] == ['project_created']
    assert storage.get_user_usage(owner.id).projects_created == 1


def test_create_project_validates_color(login, owner):
    response = login(owner).post(reverse('projects:project-list'), {'name': 'App', 'color': 'purple'})

    assert response.status_code == 400
    assert 'color' in response.data['errors']


def test_non_member_is_forbidden(login, project, outsider):
    client = login(outsider)

    assert client.get(reverse('projects:project-detail', args=[project.id])).status_code == 403
    assert client.get(reverse('projects:task-list', args=[project.id])).status_code == 403
    assert client.get(reverse('projects:project-list')).data == []


def test_unknown_project_is_not_found(login, owner):
    response = login(owner).get(reverse('projects:project-detail', args=['missing']))

    assert response.status_code == 404
    assert response.data == {'message': 'Project not found'}


def test_member_cannot_update_or_delete_project(login, project, member):
    client = login(member)

    assert client.patch(reverse('projects:project-detail', args=[project.id]), {'name': 'X'}).status_code == 403
    assert client.delete(reverse('projects:project-detail', args=[project.id])).status_code == 403


def test_owner_updates_and_deletes_project(login, project, owner):
    client = login(owner)

    response = client.patch(reverse('projects:project-detail', args=[project.id]), {'description': 'New scope'})
    assert response.status_code == 200
    assert response.data['description'] == 'New scope'
    assert response.data['name'] == 'Website Relaunch'

    assert client.delete(reverse('projects:project-detail', args=[project.id])).status_code == 204
    assert storage.get_project(project.id) is None


def test_task_lifecycle_records_activities(login, project, owner, member):
    client = login(member)

    response = client.post(reverse('projects:task-list', args=[project.id]), {
        'title': 'Write launch post',
        'priority': 'high',
        'assigneeId': owner.id,
    })
    assert response.status_code == 201
    task_id = response.data['id']
    assert response.data['status'] == 'todo'
    assert response.data['createdBy']['id'] == member.id
    assert response.data['assignee']['email'] == owner.email

    response = client.patch(reverse('projects:task-detail', args=[task_id]), {'status': 'in_progress'})
    assert response.status_code == 200
    assert response.data['priority'] == 'high'

    moved = Activity.objects.get(project_id=project.id, type='task_status_changed')
    assert moved.description == 'Moved "Write launch post" to in progress'
    assert moved.metadata == {'oldStatus': 'todo', 'newStatus': 'in_progress'}
    assert moved.user_id == member.id

    assert client.delete(reverse('projects:task-detail', args=[task_id])).status_code == 204
    types = {a.type for a in storage.get_project_activities(project.id)}
    assert types == {'task_created', 'task_status_changed', 'task_deleted'}


def test_updating_other_fields_records_no_status_activity(login, project, owner):
    task = storage.create_task(project.id, owner.id, title='Design')

    login(owner).put(reverse('projects:task-detail', args=[task.id]), {'status': 'todo', 'progress': 40})

    assert not Activity.objects.filter(type='task_status_changed').exists()
    assert storage.get_task(task.id).progress == 40


def test_assignee_must_be_member(login, project, owner, outsider):
    response = login(owner).post(reverse('projects:task-list', args=[project.id]), {
        'title': 'Review', 'assigneeId': outsider.id,
    })

    assert response.status_code == 400
    assert 'assigneeId' in response.data['errors']


def test_task_routes_check_parent_project(login, project, owner, outsider):
    task = storage.create_task(project.id, owner.id, title='Secret')
    client = login(outsider)

    assert client.get(reverse('projects:task-detail', args=[task.id])).status_code == 403
    assert client.get(reverse('projects:comment-list', args=[task.id])).status_code == 403
    assert client.get(reverse('projects:task-detail', args=['missing'])).status_code == 404


def test_comments(login, project, owner):
    task = storage.create_task(project.id, owner.id, title='Design')
    client = login(owner)

    response = client.post(reverse('projects:comment-list', args=[task.id]), {
        'content': 'Draft is ready', 'mentions': ['member@example.com'],
    })
    assert response.status_code == 201
    assert response.data['author']['id'] == owner.id

    comments = client.get(reverse('projects:comment-list', args=[task.id])).data
    assert [c['content'] for c in comments] == ['Draft is ready']
    assert Activity.objects.filter(type='comment_added', entity_id=task.id).exists()


def test_activity_feed_limit(login, project, owner):
    for i in range(5):
        storage.create_activity(project.id, 'task_created', f"Activity {i}", user_id=owner.id)

    response = login(owner).get(reverse('projects:activity-list', args=[project.id]), {'limit': 3})

    assert response.status_code == 200
    assert len(response.data) == 3
    assert response.data[0]['user']['id'] == owner.id


def test_stats(login, project, owner, member):
    yesterday = timezone.now() - timedelta(days=1)
    storage.create_task(project.id, owner.id, title='A', status=Task.Status.TODO, priority='critical')
    storage.create_task(project.id, owner.id, title='B', status=Task.Status.IN_PROGRESS, due_date=yesterday)
    storage.create_task(project.id, owner.id, title='C', status=Task.Status.DONE, priority='high',
                        due_date=yesterday)

    response = login(member).get(reverse('projects:project-stats', args=[project.id]))

    assert response.data == {
        'totalTasks': 3,
        'todoTasks': 1,
        'inProgressTasks': 1,
        'completedTasks': 1,
        'overdueTasks': 1,
        'teamMembers': 2,
        'highPriorityTasks': 2,
    }


def test_ai_analyze_stores_suggestions(login, project, owner):
    analysis = {
        'summary': 'On track.',
        'suggestions': [{'type': 'task', 'title': 'Add QA pass', 'description': 'Test pages', 'priority': 'high'}],
    }
    with patch('apps.projects.views.AIEngine') as engine_class:
        engine_class.return_value.analyze_project.return_value = analysis
        response = login(owner).post(reverse('projects:ai-analyze', args=[project.id]))

    assert response.status_code == 200
    engine_class.assert_called_once_with(api_key='test-gemini-key')
    assert response.data['summary'] == 'On track.'
    assert [s['title'] for s in response.data['suggestions']] == ['Add QA pass']
    assert storage.get_user_usage(owner.id).gemini_requests == 1


def test_apply_task_suggestion_creates_task_once(login, project, owner):
    suggestion = storage.create_ai_suggestion(project.id, 'task', 'Add QA pass', 'Test pages', 'high')
    client = login(owner)

    response = client.post(reverse('projects:ai-suggestion-apply', args=[suggestion.id]))
    assert response.status_code == 200
    assert response.data['suggestion']['applied'] is True
    assert response.data['task']['title'] == 'Add QA pass'
    assert response.data['task']['priority'] == 'high'

    again = client.post(reverse('projects:ai-suggestion-apply', args=[suggestion.id]))
    assert again.status_code == 409
    assert Task.objects.filter(project_id=project.id).count() == 1


def test_dismiss_suggestion(login, project, owner):
    suggestion = storage.create_ai_suggestion(project.id, 'risk', 'Deadline risk')
    client = login(owner)

    response = client.post(reverse('projects:ai-suggestion-dismiss', args=[suggestion.id]))

    assert response.status_code == 200
    assert response.data['dismissedAt'] is not None
    assert client.get(reverse('projects:ai-suggestions', args=[project.id])).data == []


def test_drive_sync_requires_google_tokens(login, project, owner):
    response = login(owner).post(reverse('projects:drive-sync', args=[project.id]))

    assert response.status_code == 401
    assert response.data == {'message': 'Google authentication required'}


def test_drive_sync_creates_file_then_updates_it(login, project, owner, make_tokens):
    client = login(owner, tokens=make_tokens())

    with patch('apps.projects.views.DriveService') as drive_class:
        drive_class.return_value.save_document.return_value = 'drive-file-1'
        first = client.post(reverse('projects:drive-sync', args=[project.id]))
        second = client.post(reverse('projects:drive-sync', args=[project.id]))

    assert first.data == {'success': True, 'driveFileId': 'drive-file-1'}
    assert second.status_code == 200
    calls = drive_class.return_value.save_document.call_args_list
    assert calls[0].args[2] is None
    assert calls[1].args[2] == 'drive-file-1'
    assert storage.get_project(project.id).drive_file_id == 'drive-file-1'


def test_member_cannot_sync_to_drive(login, project, member, make_tokens):
    response = login(member, tokens=make_tokens()).post(reverse('projects:drive-sync', args=[project.id]))

    assert response.status_code == 403


def test_members_listing_includes_users(login, project, owner, member):
    response = login(member).get(reverse('teams:project-members', args=[project.id]))

    assert response.status_code == 200
    roles = {m['userId']: m['role'] for m in response.data}
    assert roles == {owner.id: ProjectMember.Role.OWNER, member.id: ProjectMember.Role.MEMBER}
