from django.urls import path

from .views import NotificationListView, NotificationMarkAllReadView

urlpatterns = [
    path('', NotificationListView.as_view(), name='notifications-list'),
    path('read-all/', NotificationMarkAllReadView.as_view(), name='notifications-read-all'),
]
