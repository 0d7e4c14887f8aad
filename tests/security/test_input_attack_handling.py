"""
Security tests for adversarial input handling on task endpoints.

Submits script payloads, markup and store query-operator injections
through task fields and payload keys to verify the API strips them before
anything is validated or persisted (OWASP A03 - Injection).

Key SDET Concepts Demonstrated:
- Injection payload construction (script blocks, $operator tokens and keys)
- Before-and-after state checks to detect silent data corruption
"""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.security


XSS_PAYLOADS = [
    "<script>alert('xss')</script>Groceries",
    "<SCRIPT SRC=http://evil.example/x.js></SCRIPT>Groceries",
    "<img src=x onerror=alert(1)>Groceries",
    "<scr<script>x</script>ipt>alert(1)</script>Groceries",
]


@pytest.mark.parametrize("payload", XSS_PAYLOADS)
def test_script_and_markup_are_stripped_from_stored_fields(client, db_session, payload):
    """Stored titles and descriptions never contain markup."""
    # Act
    response = client.post("/tasks", json={"title": payload, "description": payload})

    # Assert
    assert response.status_code == 201
    body = response.get_json()
    for field in ("title", "description"):
        assert "<" not in body[field] or ">" not in body[field]
        assert "script>" not in body[field].lower()
        assert body[field].endswith("Groceries")


def test_title_made_only_of_markup_is_rejected(client, db_session):
    """A title that sanitizes down to nothing is treated as missing."""
    # Act
    response = client.post("/tasks", json={"title": "<script>alert(1)</script><b></b>"})

    # Assert
    assert response.status_code == 400
    assert response.get_json()["details"] == ["Title is required and must be a non-empty string"]


def test_operator_tokens_are_stripped_from_values(client, db_session):
    """Query-operator tokens inside strings are removed before storage."""
    # Act
    response = client.post(
        "/tasks",
        json={"title": "Audit $where logs", "description": "{$ne: null}"},
    )

    # Assert
    assert response.status_code == 201
    body = response.get_json()
    assert "$where" not in body["title"]
    assert "$ne" not in body["description"]


def test_operator_status_object_is_rejected(client, db_session):
    """An operator object in place of the status value cannot slip through."""
    # Act
    response = client.post("/tasks", json={"title": "t", "status": {"$ne": "pending"}})

    # Assert
    assert response.status_code == 400
    assert response.get_json()["details"] == ["Status must be either 'pending' or 'completed'"]


def test_operator_keys_cannot_rewrite_other_tasks(client, db_session, multiple_tasks):
    """An update built from operator keys is rejected and changes nothing."""
    # Arrange
    target = multiple_tasks[0]
    before = client.get("/tasks").get_json()

    # Act
    response = client.put(
        f"/tasks/{target.id}",
        json={"$set": {"status": "completed"}, "$where": "1 == 1"},
    )

    # Assert
    assert response.status_code == 400
    assert client.get("/tasks").get_json() == before


def test_operator_object_title_is_rejected_on_update(client, db_session, sample_task):
    """A title replaced by an operator object is not a string."""
    # Act
    response = client.put(f"/tasks/{sample_task.id}", json={"title": {"$gt": ""}})

    # Assert
    assert response.status_code == 400
    assert response.get_json()["details"] == ["Title must be a non-empty string"]
    assert client.get(f"/tasks/{sample_task.id}").get_json()["title"] == "Sample Task"


def test_operator_in_path_is_rejected_as_malformed_id(client, db_session):
    """Path identifiers carrying operator syntax never reach the store."""
    # Act
    response = client.get("/tasks/$ne")

    # Assert
    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid task ID format"}


@pytest.mark.parametrize("depth", [450, 600])
def test_deeply_nested_body_does_not_crash_the_request(client, db_session, api_headers, depth):
    """Nesting depth in an ignored field never turns into a 500."""
    # Arrange
    body = '{"title": "x", "extra": ' + "[" * depth + "]" * depth + "}"

    # Act
    response = client.post("/tasks", data=body, headers=api_headers)

    # Assert
    assert response.status_code == 201
    assert response.get_json()["title"] == "x"
    assert "extra" not in response.get_json()


def test_deeply_nested_operator_keys_are_dropped_on_update(
    client, db_session, sample_task, api_headers
):
    """Operator keys buried deep in an update body are still removed."""
    # Arrange
    depth = 600
    body = (
        '{"status": "completed", "extra": '
        + '{"$where": 1, "next": ' * depth
        + "{}"
        + "}" * depth
        + "}"
    )

    # Act
    response = client.put(f"/tasks/{sample_task.id}", data=body, headers=api_headers)

    # Assert
    assert response.status_code == 200
    assert response.get_json()["status"] == "completed"
