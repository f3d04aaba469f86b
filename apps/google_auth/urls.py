from django.urls import path

from . import views

app_name = 'google_auth'

urlpatterns = [
    path('auth/status', views.AuthStatusView.as_view(), name='status'),
    path('auth/google-config', views.GoogleConfigView.as_view(), name='google-config'),
    path('auth/callback', views.OAuthCallbackView.as_view(), name='callback'),
    path('auth/exchange-oauth-code', views.ExchangeOAuthCodeView.as_view(), name='exchange-oauth-code'),
    path('auth/check-google-tokens', views.CheckGoogleTokensView.as_view(), name='check-google-tokens'),
    path('auth/refresh-google-token', views.RefreshGoogleTokenView.as_view(), name='refresh-google-token'),
    path('auth/user', views.CurrentUserView.as_view(), name='user'),
    path('auth/logout', views.LogoutView.as_view(), name='logout'),
    path('auth/inherit-project-config', views.InheritProjectConfigView.as_view(), name='inherit-project-config'),
    path('config/google', views.SaveGoogleConfigView.as_view(), name='save-google-config'),
]
