"""Tests for the Todoist task source."""

from unittest.mock import MagicMock

import pytest
import requests

from todoi.exceptions import TaskSourceError
from todoi.task_source import TodoistTaskSource, split_content

PROJECTS = [
    {"id": "100", "name": "Inbox", "is_inbox_project": True},
    {"id": "200", "name": "Work", "is_inbox_project": False},
]


def make_response(payload=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


@pytest.fixture
def session():
    """Create a mock requests session."""
    mock_session = MagicMock()
    mock_session.headers = {}
    return mock_session


@pytest.fixture
def source(session):
    """Create a Todoist task source with a mock session."""
    return TodoistTaskSource(token="secret", session=session)


def test_init_sets_authorization_header(session):
    """Test that the API token is sent as a bearer token."""
    TodoistTaskSource(token="secret", session=session)
    assert session.headers["Authorization"] == "Bearer secret"


def test_init_requires_token():
    """Test that an empty token is rejected."""
    with pytest.raises(ValueError, match="token"):
        TodoistTaskSource(token="")


def test_fetch_inbox_candidates_filters_tasks(source, session):
    """Test that scheduled tasks, parents and sub-items are dropped."""
    items = [
        {"id": "1", "content": "[Great video](https://youtube.com/watch?v=abc)", "labels": ["watch"]},
        {"id": "2", "content": "Pay rent", "due": {"date": "2026-10-20"}},
        {"id": "3", "content": "Plan trip https://example.com/trip"},
        {"id": "4", "content": "Book hotel", "parent_id": "3"},
        {"id": "5", "content": "Read later", "description": "https://strongerbyscience.com/squat/"},
        {"id": "6", "content": "Call mum"},
    ]
    session.get.side_effect = [make_response(PROJECTS), make_response(items)]

    tasks = source.fetch_inbox_candidates()

    assert [t.id for t in tasks] == ["1", "5", "6"]
    assert tasks[0].title == "Great video"
    assert tasks[0].url == "https://youtube.com/watch?v=abc"
    assert tasks[0].labels == ["watch"]
    assert tasks[1].url == "https://strongerbyscience.com/squat/"
    assert tasks[2].url is None
    assert not tasks[2].is_eligible

    tasks_call = session.get.call_args_list[1]
    assert tasks_call.args[0] == "https://api.todoist.com/rest/v2/tasks"
    assert tasks_call.kwargs["params"] == {"project_id": "100"}


def test_fetch_without_inbox_project(source, session):
    """Test that a missing inbox project is reported."""
    session.get.return_value = make_response([{"id": "200", "name": "Work"}])

    with pytest.raises(TaskSourceError, match="Inbox"):
        source.fetch_inbox_candidates()


def test_fetch_http_error(source, session):
    """Test that HTTP errors are wrapped."""
    response = make_response(status_code=401)
    response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
    session.get.return_value = response

    with pytest.raises(TaskSourceError, match="401"):
        source.fetch_inbox_candidates()


def test_fetch_invalid_json(source, session):
    """Test that an unparsable response is wrapped."""
    response = make_response()
    response.json.side_effect = ValueError("Expecting value")
    session.get.return_value = response

    with pytest.raises(TaskSourceError, match="invalid JSON"):
        source.fetch_inbox_candidates()


def test_mark_complete(source, session):
    """Test closing a task."""
    session.post.return_value = make_response(status_code=204)

    assert source.mark_complete("1") is True
    session.post.assert_called_once_with("https://api.todoist.com/rest/v2/tasks/1/close", timeout=30)


def test_mark_complete_refused(source, session):
    """Test that a non-204 response is reported as a refusal."""
    session.post.return_value = make_response(status_code=500)

    assert source.mark_complete("1") is False


def test_mark_complete_connection_error(source, session):
    """Test that connection errors are wrapped."""
    session.post.side_effect = requests.ConnectionError("connection reset")

    with pytest.raises(TaskSourceError, match="connection reset"):
        source.mark_complete("1")


@pytest.mark.parametrize(
    "content,description,expected",
    [
        ("[Great video](https://youtu.be/abc)", "", ("Great video", "https://youtu.be/abc")),
        ("Read https://example.com/post later", "", ("Read https://example.com/post later", "https://example.com/post")),
        ("Read later", "see https://example.com/a", ("Read later", "https://example.com/a")),
        ("  Buy milk ", "", ("Buy milk", None)),
    ],
)
def test_split_content(content, description, expected):
    """Test splitting task content into title and URL."""
    assert split_content(content, description) == expected
