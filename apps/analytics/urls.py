from django.urls import path
from . import views

app_name = 'analytics'

urlpatterns = [
    # Reporting
    path('dashboard/', views.dashboard, name='dashboard'),
    path('bookings/stats/', views.booking_stats, name='booking-stats'),
    path('reports/', views.reports, name='reports'),
    path('export/', views.export_data, name='export'),
    path('maintenance/', views.maintenance_tasks, name='maintenance'),

    # User management
    path('users/', views.user_list, name='user-list'),
    path('users/<uuid:user_id>/', views.user_detail, name='user-detail'),
    path('logs/', views.audit_logs, name='audit-logs'),
]
