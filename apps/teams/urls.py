from django.urls import path

from . import views

app_name = 'teams'

urlpatterns = [
    path('projects/<str:project_id>/members', views.ProjectMembersView.as_view(), name='project-members'),
    path('projects/<str:project_id>/members/<str:user_id>', views.ProjectMemberDetailView.as_view(), name='project-member-detail'),
    path('invitations/<str:invitation_id>', views.InvitationDetailView.as_view(), name='invitation-detail'),
    path('invitations/<str:invitation_id>/accept', views.AcceptInvitationView.as_view(), name='invitation-accept'),
]
