"""Task tracker access."""

import re
from abc import ABC, abstractmethod
from typing import Any

import requests
import structlog

from todoi.exceptions import TaskSourceError
from todoi.models import Task

logger = structlog.get_logger()

TODOIST_API = "https://api.todoist.com/rest/v2"

MARKDOWN_LINK_RE = re.compile(r"\[(?P<title>[^\]]+)\]\((?P<url>https?://[^)\s]+)\)")
URL_RE = re.compile(r"https?://[^\s)>\]]+")


class TaskSource(ABC):
    """Abstract base class for task trackers."""

    @abstractmethod
    def fetch_inbox_candidates(self) -> list[Task]:
        """Fetch the tasks that may be imported."""
        pass

    @abstractmethod
    def mark_complete(self, task_id: str) -> bool:
        """Mark a task complete. Returns False if the tracker refused."""
        pass


def split_content(content: str, description: str = "") -> tuple[str, str | None]:
    """Split task content into a title and a URL.

    "[title](url)" yields both parts; otherwise the first URL found in the
    content or description is used and the content is the title.
    """
    match = MARKDOWN_LINK_RE.search(content)
    if match:
        return match.group("title").strip(), match.group("url")

    match = URL_RE.search(content) or URL_RE.search(description)
    url = match.group(0) if match else None
    return content.strip(), url


class TodoistTaskSource(TaskSource):
    """Todoist REST API task source."""

    def __init__(
        self,
        token: str,
        base_url: str = TODOIST_API,
        session: requests.Session | None = None,
        timeout: float = 30,
    ) -> None:
        """Initialize Todoist task source.

        Args:
            token: Todoist API token
            base_url: REST API base URL
            session: Optional requests session (used for connection reuse and tests)
            timeout: Request timeout in seconds
        """
        if not token:
            raise ValueError("Todoist token required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})
        logger.debug("Initializing Todoist task source", base_url=self.base_url)

    def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("Todoist request", method="GET", url=url, params=params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error("Todoist request failed", url=url, error=str(e))
            raise TaskSourceError(f"GET {path} failed: {e}") from e
        except ValueError as e:
            logger.error("Failed to parse Todoist response", url=url, error=str(e))
            raise TaskSourceError(f"GET {path} returned invalid JSON") from e

    def inbox_project_id(self) -> str:
        """Return the id of the inbox project."""
        projects = self._get("/projects")
        for project in projects:
            if project.get("is_inbox_project"):
                return str(project["id"])
        raise TaskSourceError("Inbox project does not exist")

    @staticmethod
    def _to_task(item: dict[str, Any], subtask_count: int) -> Task:
        content = item.get("content", "")
        description = item.get("description") or ""
        title, url = split_content(content, description)
        return Task(
            id=str(item["id"]),
            title=title,
            url=url,
            description=description,
            scheduled=item.get("due") is not None,
            subtask_count=subtask_count,
            labels=list(item.get("labels") or []),
        )

    def fetch_inbox_candidates(self) -> list[Task]:
        """Fetch inbox tasks that are not scheduled and have no sub-items."""
        project_id = self.inbox_project_id()
        items = self._get("/tasks", params={"project_id": project_id})
        logger.info("Retrieved Todoist tasks", count=len(items))

        children: dict[str, int] = {}
        for item in items:
            parent_id = item.get("parent_id")
            if parent_id:
                children[str(parent_id)] = children.get(str(parent_id), 0) + 1

        tasks = []
        for item in items:
            if item.get("parent_id"):
                continue
            task = self._to_task(item, children.get(str(item["id"]), 0))
            if task.scheduled or task.subtask_count:
                logger.debug("Dropping ineligible task", task_id=task.id)
                continue
            tasks.append(task)
        return tasks

    def mark_complete(self, task_id: str) -> bool:
        url = f"{self.base_url}/tasks/{task_id}/close"
        logger.info("Closing Todoist task", task_id=task_id)
        try:
            response = self.session.post(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Todoist request failed", url=url, error=str(e))
            raise TaskSourceError(f"POST /tasks/{task_id}/close failed: {e}") from e
        return response.status_code == 204
