from django.urls import re_path

from . import views

urlpatterns = [
    re_path(r"^api/tasks/?$", views.task_collection, name="task-collection"),
    re_path(r"^api/tasks/(?P<task_id>[^/]+)/complete/?$", views.task_complete, name="task-complete"),
    re_path(r"^api/tasks/(?P<task_id>[^/]+)/?$", views.task_detail, name="task-detail"),
]
