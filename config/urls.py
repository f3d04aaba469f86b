"""
Main URL configuration for the ProjectFlow backend.
"""
from django.contrib import admin
from django.urls import path, include
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


@api_view(['GET'])
@permission_classes([AllowAny])
def home(request):
    return Response({'message': 'ProjectFlow Backend is Running!', 'status': 'ok'})


urlpatterns = [
    # root
    path('', home, name='home'),

    # Admin
    path('admin/', admin.site.urls),

    # App URLs
    path('api/', include('apps.google_auth.urls', namespace='google_auth')),
    path('api/', include('apps.projects.urls', namespace='projects')),
    path('api/', include('apps.teams.urls', namespace='teams')),
    path('api/', include('apps.payments.urls', namespace='payments')),
    path('api/', include('apps.users.urls', namespace='users')),
]
