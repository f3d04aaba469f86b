from django.urls import path

from . import views

app_name = 'projects'

urlpatterns = [
    # Projects
    path('projects', views.ProjectListCreateView.as_view(), name='project-list'),
    path('projects/drive-import', views.DriveImportView.as_view(), name='drive-import'),
    path('projects/<str:project_id>', views.ProjectDetailView.as_view(), name='project-detail'),
    path('projects/<str:project_id>/document', views.ProjectDocumentView.as_view(), name='project-document'),
    path('projects/<str:project_id>/drive-sync', views.DriveSyncView.as_view(), name='drive-sync'),

    # Tasks and comments
    path('projects/<str:project_id>/tasks', views.TaskListCreateView.as_view(), name='task-list'),
    path('tasks/<str:task_id>', views.TaskDetailView.as_view(), name='task-detail'),
    path('tasks/<str:task_id>/comments', views.CommentListCreateView.as_view(), name='comment-list'),

    # Activity feed and dashboard
    path('projects/<str:project_id>/activities', views.ActivityListView.as_view(), name='activity-list'),
    path('projects/<str:project_id>/stats', views.ProjectStatsView.as_view(), name='project-stats'),

    # AI
    path('projects/<str:project_id>/ai/analyze', views.AiAnalyzeView.as_view(), name='ai-analyze'),
    path('projects/<str:project_id>/ai/suggestions', views.AiSuggestionListView.as_view(), name='ai-suggestions'),
    path('ai/suggestions/<str:suggestion_id>/dismiss', views.AiSuggestionDismissView.as_view(), name='ai-suggestion-dismiss'),
    path('ai/suggestions/<str:suggestion_id>/apply', views.AiSuggestionApplyView.as_view(), name='ai-suggestion-apply'),
    path('ai/task-suggestion', views.AiTaskSuggestionView.as_view(), name='ai-task-suggestion'),
]
