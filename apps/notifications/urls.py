from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.notification_list, name='list'),
    path('unread-count/', views.unread_count, name='unread-count'),
    path('read-all/', views.mark_all_read, name='read-all'),
    path('clear/', views.clear_all, name='clear'),
    path('preferences/', views.preferences, name='preferences'),
    path('test/', views.send_test, name='test'),
    path('<uuid:notification_id>/read/', views.mark_read, name='read'),
    path('<uuid:notification_id>/unread/', views.mark_unread, name='unread'),
    path('<uuid:notification_id>/archive/', views.archive, name='archive'),
    path('<uuid:notification_id>/unarchive/', views.unarchive, name='unarchive'),
    path('<uuid:notification_id>/', views.notification_delete, name='delete'),

    # Admin
    path('admin/bulk/', views.bulk_send, name='bulk'),
    path('admin/stats/', views.notification_stats, name='stats'),
]
