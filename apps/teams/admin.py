from django.contrib import admin

from .models import Invitation, ProjectMember


@admin.register(ProjectMember)
class ProjectMemberAdmin(admin.ModelAdmin):
    list_display = ('project', 'user_id', 'role', 'joined_at')
    list_filter = ('role',)
    search_fields = ('project__name', 'user_id')


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    list_display = ('email', 'project', 'role', 'status', 'inviter_name', 'created_at', 'accepted_at')
    list_filter = ('status', 'role')
    search_fields = ('email', 'project__name')
    readonly_fields = ('created_at', 'accepted_at')
