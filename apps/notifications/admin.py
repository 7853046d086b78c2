from django.contrib import admin
from django.utils import timezone
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'type', 'category', 'priority', 'is_read', 'is_archived', 'email_sent', 'created_at']
    list_filter = ['type', 'category', 'priority', 'is_read', 'is_archived', 'email_sent', 'created_at']
    search_fields = ['title', 'message', 'user__email']
    readonly_fields = ['short_message', 'read_at', 'sent_at', 'created_at', 'updated_at']
    raw_id_fields = ['user']
    date_hierarchy = 'created_at'

    actions = ['mark_read']

    @admin.action(description='Mark selected notifications as read')
    def mark_read(self, request, queryset):
        count = queryset.filter(is_read=False).update(is_read=True, read_at=timezone.now())
        self.message_user(request, f'Marked {count} notification(s) as read.')
