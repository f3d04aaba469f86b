from django.contrib import admin

from .models import Activity, AiSuggestion, Comment, Project, Task


class TaskInline(admin.TabularInline):
    model = Task
    extra = 0
    fields = ('title', 'status', 'priority', 'due_date', 'progress')

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner_id', 'drive_file_id', 'created_at', 'updated_at')
    search_fields = ('name', 'owner_id')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('owner',)
    inlines = [TaskInline]


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ('title', 'project', 'status', 'priority', 'progress', 'due_date')
    list_filter = ('status', 'priority')
    search_fields = ('title', 'project__name')
    raw_id_fields = ('project', 'assignee', 'created_by')


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ('task', 'author_id', 'created_at')
    search_fields = ('content',)
    raw_id_fields = ('task', 'author')


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ('type', 'description', 'project', 'user_id', 'created_at')
    list_filter = ('type',)
    readonly_fields = ('created_at',)


@admin.register(AiSuggestion)
class AiSuggestionAdmin(admin.ModelAdmin):
    list_display = ('title', 'project', 'type', 'priority', 'applied', 'dismissed_at')
    list_filter = ('type', 'priority', 'applied')
