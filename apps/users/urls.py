from django.urls import path

from .views import ProfileView, UsageView

app_name = 'users'

urlpatterns = [
    path('users/profile', ProfileView.as_view(), name='profile'),
    path('usage', UsageView.as_view(), name='usage'),
]
