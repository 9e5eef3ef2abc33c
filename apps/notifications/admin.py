from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'notif_type', 'user', 'order', 'is_read', 'created_at')
    search_fields = ('message', 'user__email')
    list_filter = ('notif_type', 'is_read', 'created_at')
