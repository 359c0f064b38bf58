import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8000"


class ApiError(Exception):
    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        self.status = status


def _error_message(response, fallback):
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return fallback


class TaskApiClient:
    """
    Thin HTTP wrapper over the /api/tasks endpoints.

    Every failure (transport error or non-2xx answer) is raised as ApiError
    carrying the server's message when it sent one.
    """

    def __init__(self, base_url=DEFAULT_BASE_URL, session=None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def close(self):
        self.session.close()

    def _url(self, *parts):
        return "/".join([self.base_url, "api", "tasks", *[str(p) for p in parts]])

    def _request(self, method, url, fallback, **kwargs):
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise ApiError(fallback) from exc
        if not response.ok:
            raise ApiError(_error_message(response, fallback), status=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(fallback, status=response.status_code) from exc

    def list_tasks(self, status=None, priority=None, search=None):
        params = {}
        if status:
            params["status"] = status
        if priority:
            params["priority"] = priority
        if search:
            params["search"] = search
        return self._request("GET", self._url(), "Failed to fetch tasks", params=params)

    def create_task(self, data):
        return self._request("POST", self._url(), "Failed to create task", json=data)

    def update_task(self, task_id, updates):
        return self._request("PUT", self._url(task_id), "Failed to update task", json=updates)

    def toggle_complete(self, task_id):
        return self._request(
            "PATCH", self._url(task_id, "complete"), "Failed to toggle task completion"
        )

    def delete_task(self, task_id):
        return self._request("DELETE", self._url(task_id), "Failed to delete task")
