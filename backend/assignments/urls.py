"""
URL configuration for the assignments app.
"""

from django.urls import path
from . import views

urlpatterns = [
    path('', views.api_info, name='api-info'),
    path('tasks/score/', views.score_tasks, name='score-tasks'),
    path('tasks/parse/', views.parse_text, name='parse-text'),
    path('tasks/recommendations/', views.recommendations, name='recommendations'),
    path('classroom/import/', views.import_classroom, name='import-classroom'),
    # Session dashboard
    path('dashboard/', views.dashboard, name='dashboard'),
    path('dashboard/reset/', views.reset_dashboard, name='reset-dashboard'),
    path('dashboard/tasks/<str:task_id>/', views.delete_task, name='delete-task'),
    path('dashboard/tasks/<str:task_id>/complete/', views.complete_task, name='complete-task'),
]
