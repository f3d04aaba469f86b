from django.apps import AppConfig


class GoogleAuthConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.google_auth'
    label = 'google_auth'
