from datetime import date, datetime, timedelta, timezone

import pytest
import requests

from yourday.client import TasksClient, day_bounds, week_bounds
from yourday.core.errors import ConflictError, InvalidField, NotFound, PersistenceError, Unauthenticated
from yourday.db.models import TaskCategory

TASK = {
    "id": "t1",
    "title": "Standup",
    "description": None,
    "startTime": "2024-01-01T09:00:00Z",
    "endTime": "2024-01-01T09:30:00Z",
    "category": "meeting",
    "notes": None,
    "reminder": None,
    "ownerId": "u1",
    "createdAt": "2024-01-01T08:00:00Z",
    "updatedAt": "2024-01-01T08:00:00Z",
}


class FakeResponse:
    def __init__(self, status_code, data):
        self.status_code = status_code
        self._data = data

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


class FakeSession:
    """Stands in for requests.Session; replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_client(*responses):
    session = FakeSession(*responses)
    return TasksClient("tok", base_url="http://api.test/api/", timeout=3.0, session=session), session


def test_create_sends_wire_names_and_auth():
    client, session = make_client(FakeResponse(201, {"task": TASK}))
    task = client.create_task(
        "Standup",
        datetime(2024, 1, 1, 9, tzinfo=timezone.utc),
        datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc),
        category=TaskCategory.meeting,
    )
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://api.test/api/tasks")
    assert kwargs["headers"] == {"Authorization": "Bearer tok"}
    assert kwargs["timeout"] == 3.0
    assert kwargs["json"] == {
        "title": "Standup",
        "startTime": "2024-01-01T09:00:00+00:00",
        "endTime": "2024-01-01T09:30:00+00:00",
        "category": "meeting",
    }
    assert task.id == "t1"
    assert task.category is TaskCategory.meeting
    assert task.start_time == datetime(2024, 1, 1, 9, tzinfo=timezone.utc)


def test_update_sends_only_given_fields():
    client, session = make_client(FakeResponse(200, {"task": TASK}))
    client.update_task("t1", notes="slides")
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("PUT", "http://api.test/api/tasks/t1")
    assert kwargs["json"] == {"notes": "slides"}


def test_unknown_fields_are_refused_locally():
    client, session = make_client()
    with pytest.raises(TypeError):
        client.update_task("t1", colour="red")
    assert session.calls == []


def test_conflict_response_becomes_conflict_error():
    body = {
        "message": "Task overlaps with existing task",
        "conflictingTask": {
            "id": "t0",
            "title": "Dentist",
            "startTime": "2024-01-01T14:00:00Z",
            "endTime": "2024-01-01T15:00:00Z",
        },
    }
    client, _ = make_client(FakeResponse(400, body))
    with pytest.raises(ConflictError) as exc:
        client.create_task("Review", datetime(2024, 1, 1, 14, 30), datetime(2024, 1, 1, 16))
    assert exc.value.blocking_task_id == "t0"
    assert exc.value.blocking_title == "Dentist"
    assert exc.value.blocking_start == datetime(2024, 1, 1, 14, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "status,body,error",
    [
        (400, {"message": "Title is required", "field": "title"}, InvalidField),
        (401, {"message": "Token is not valid"}, Unauthenticated),
        (404, {"message": "Task not found"}, NotFound),
        (500, {"message": "Server error"}, PersistenceError),
        (502, None, PersistenceError),
    ],
)
def test_error_statuses(status, body, error):
    client, _ = make_client(FakeResponse(status, body))
    with pytest.raises(error):
        client.get_task("t1")


def test_timeout_is_reported_as_persistence_error():
    client, _ = make_client(requests.Timeout("slow"))
    with pytest.raises(PersistenceError) as exc:
        client.delete_task("t1")
    assert "timed out" in exc.value.message


def test_connection_failure_is_reported_as_persistence_error():
    client, _ = make_client(requests.ConnectionError("down"))
    with pytest.raises(PersistenceError):
        client.list_tasks()


def test_list_passes_range_and_category():
    client, session = make_client(FakeResponse(200, {"tasks": [TASK]}))
    tasks = client.list_tasks(
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 1, 2, tzinfo=timezone.utc),
        category="meeting",
    )
    assert session.calls[0][2]["params"] == {
        "startDate": "2024-01-01T00:00:00+00:00",
        "endDate": "2024-01-02T00:00:00+00:00",
        "category": "meeting",
    }
    assert [t.title for t in tasks] == ["Standup"]


def test_day_and_week_bounds_default_to_utc():
    start, end = day_bounds(date(2024, 1, 3))
    assert start == datetime(2024, 1, 3, tzinfo=timezone.utc)
    assert end == datetime(2024, 1, 3, 23, 59, 59, 999999, tzinfo=timezone.utc)

    # 2024-01-03 is a Wednesday
    start, end = week_bounds(date(2024, 1, 3))
    assert start == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert end == datetime(2024, 1, 7, 23, 59, 59, 999999, tzinfo=timezone.utc)

    start, _ = week_bounds(date(2024, 1, 7))
    assert start == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_bounds_follow_a_given_zone():
    tz = timezone(timedelta(hours=2))
    start, end = day_bounds(date(2024, 1, 3), tz)
    assert start == datetime(2024, 1, 2, 22, tzinfo=timezone.utc)
    assert end.utcoffset() == timedelta(hours=2)


def test_tasks_for_date_sends_local_day_with_offset():
    client, session = make_client(FakeResponse(200, {"tasks": []}))
    client.tasks_for_date(date(2024, 1, 3), tz=timezone(timedelta(hours=-5)))
    params = session.calls[0][2]["params"]
    assert params["startDate"] == "2024-01-03T00:00:00-05:00"
    assert params["endDate"] == "2024-01-03T23:59:59.999999-05:00"


def test_tasks_for_week_queries_monday_to_sunday():
    client, session = make_client(FakeResponse(200, {"tasks": []}))
    assert client.tasks_for_week(date(2024, 1, 3)) == []
    params = session.calls[0][2]["params"]
    assert params["startDate"] == "2024-01-01T00:00:00+00:00"
    assert params["endDate"] == "2024-01-07T23:59:59.999999+00:00"


def test_find_conflicts_parses_pairs():
    other = dict(TASK, id="t2", startTime="2024-01-01T09:15:00Z")
    client, _ = make_client(FakeResponse(200, {"conflicts": [{"first": TASK, "second": other}]}))
    [(first, second)] = client.find_conflicts()
    assert (first.id, second.id) == ("t1", "t2")


def test_categories_are_parsed():
    data = {"categories": [{"value": "meeting", "label": "Meeting", "color": "#3B82F6"}]}
    client, session = make_client(FakeResponse(200, data))
    [category] = client.categories()
    assert session.calls[0][:2] == ("GET", "http://api.test/api/tasks/categories")
    assert category.value is TaskCategory.meeting
    assert category.label == "Meeting"
