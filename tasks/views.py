import functools
import logging

from django.apps import apps
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .errors import TaskError, TaskNotFound
from .validation import (
    clean_create,
    clean_list_filters,
    clean_update,
    parse_json_body,
    parse_task_id,
)

logger = logging.getLogger(__name__)


def get_store():
    return apps.get_app_config("tasks").store


def error_response(message, status):
    return JsonResponse({"error": message}, status=status)


def method_not_allowed(allowed):
    response = error_response("Method not allowed", status=405)
    response["Allow"] = ", ".join(allowed)
    return response


def handle_errors(failure_message):
    """
    TaskError -> its own status and message.
    Anything else is logged and reported as a generic 500.
    """

    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                return view(request, *args, **kwargs)
            except TaskError as exc:
                return error_response(exc.message, status=exc.status)
            except Exception:
                logger.exception("%s %s failed", request.method, request.path)
                return error_response(failure_message, status=500)

        return wrapper

    return decorator


def _get_existing(store, task_id):
    task = store.get(task_id)
    if task is None:
        raise TaskNotFound()
    return task


@csrf_exempt
def task_collection(request):
    """
    GET  /api/tasks?status=&priority=&search=
    POST /api/tasks  body: {"title": ..., "description", "due_date", "priority"}
    """
    if request.method == "GET":
        return list_tasks(request)
    if request.method == "POST":
        return create_task(request)
    return method_not_allowed(["GET", "POST"])


@csrf_exempt
def task_detail(request, task_id):
    """
    PUT    /api/tasks/<id>
    DELETE /api/tasks/<id>
    """
    if request.method == "PUT":
        return update_task(request, task_id)
    if request.method == "DELETE":
        return delete_task(request, task_id)
    return method_not_allowed(["PUT", "DELETE"])


@csrf_exempt
def task_complete(request, task_id):
    """PATCH /api/tasks/<id>/complete"""
    if request.method == "PATCH":
        return toggle_complete(request, task_id)
    return method_not_allowed(["PATCH"])


@handle_errors("Failed to fetch tasks")
def list_tasks(request):
    filters = clean_list_filters(request.GET)
    tasks = get_store().list_tasks(**filters)
    return JsonResponse([t.as_dict() for t in tasks], safe=False)


@handle_errors("Failed to create task")
def create_task(request):
    fields = clean_create(parse_json_body(request))
    task = get_store().create(**fields)
    logger.info("Created task id=%s", task.id)
    return JsonResponse(task.as_dict(), status=201)


@handle_errors("Failed to update task")
def update_task(request, task_id):
    task_id = parse_task_id(task_id)
    store = get_store()
    task = _get_existing(store, task_id)
    fields = clean_update(parse_json_body(request))
    task = store.update(task, **fields)
    logger.info("Updated task id=%s", task.id)
    return JsonResponse(task.as_dict())


@handle_errors("Failed to toggle task completion")
def toggle_complete(request, task_id):
    task_id = parse_task_id(task_id)
    store = get_store()
    task = store.toggle_complete(_get_existing(store, task_id))
    logger.info("Toggled task id=%s completed=%s", task.id, task.completed)
    return JsonResponse(task.as_dict())


@handle_errors("Failed to delete task")
def delete_task(request, task_id):
    task_id = parse_task_id(task_id)
    store = get_store()
    deleted_id = store.delete(_get_existing(store, task_id))
    logger.info("Deleted task id=%s", deleted_id)
    return JsonResponse({"message": "Task deleted successfully", "id": deleted_id})
