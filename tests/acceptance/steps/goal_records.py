"""Step definitions for the Goal records feature."""

import json

from pytest_bdd import given, parsers, then, when

from tests.acceptance.conftest import ResponseContext
from tests.conftest import Client


def goal_for(patient_id: str) -> dict[str, object]:
    return {
        "resourceType": "Goal",
        "patient": {"reference": f"Patient/{patient_id}", "referenceid": patient_id},
    }


def _location_id(response_context: ResponseContext) -> str:
    assert response_context.response is not None, "Response has not been set."
    return response_context.response.headers["Location"].rsplit("/", 1)[-1]


@given("the API is running")
def check_api_is_running(client: Client) -> None:
    response = client.send_health_check()
    assert response.status_code == 200


@given(parsers.parse('Goals exist for patients "{patients}"'))
def create_goals(
    client: Client, response_context: ResponseContext, patients: str
) -> None:
    for patient_id in patients.split(","):
        response = client.create("Goal", json.dumps(goal_for(patient_id)))
        assert response.status_code == 201
        response_context.response = response
        response_context.created_ids.append(_location_id(response_context))


@when(parsers.parse('I create a Goal for patient "{patient_id}"'))
def create_goal(
    client: Client, response_context: ResponseContext, patient_id: str
) -> None:
    response_context.response = client.create("Goal", json.dumps(goal_for(patient_id)))
    if response_context.response.status_code == 201:
        response_context.created_ids.append(_location_id(response_context))


@when("I read the created Goal")
def read_created_goal(client: Client, response_context: ResponseContext) -> None:
    response_context.response = client.read("Goal", response_context.created_ids[-1])


@when(parsers.parse('I read the Goal "{resource_id}"'))
def read_goal(
    client: Client, response_context: ResponseContext, resource_id: str
) -> None:
    response_context.response = client.read("Goal", resource_id)


@when(parsers.parse('I search Goals with "{query}"'))
def search_goals(client: Client, response_context: ResponseContext, query: str) -> None:
    response_context.response = client.request("GET", f"/Goal?{query}")


@when("I delete the created Goal")
def delete_created_goal(client: Client, response_context: ResponseContext) -> None:
    response_context.response = client.delete("Goal", response_context.created_ids[-1])


@then(
    parsers.cfparse(
        "the response status code should be {expected_status:d}",
        extra_types={"expected_status": int},
    )
)
def check_status_code(response_context: ResponseContext, expected_status: int) -> None:
    assert response_context.response is not None, "Response has not been set."
    assert response_context.response.status_code == expected_status, (
        f"Expected status {expected_status}, "
        f"got {response_context.response.status_code}"
    )


@then("the Location header should point at the new Goal")
def check_location(response_context: ResponseContext) -> None:
    assert response_context.response is not None, "Response has not been set."
    location = response_context.response.headers["Location"]
    assert location.endswith(f"/Goal/{response_context.created_ids[-1]}")


@then(parsers.parse('the response should be the Goal for patient "{patient_id}"'))
def check_goal(response_context: ResponseContext, patient_id: str) -> None:
    assert response_context.response is not None, "Response has not been set."
    assert response_context.response.json() == {
        **goal_for(patient_id),
        "id": response_context.created_ids[-1],
    }


@then(parsers.parse("the Bundle should contain {count:d} Goal entries"))
def check_bundle(response_context: ResponseContext, count: int) -> None:
    assert response_context.response is not None, "Response has not been set."
    bundle = response_context.response.json()
    assert bundle["totalResults"] == count
    assert [entry["title"] for entry in bundle["entry"]] == [
        f"Goal {entry['id']}" for entry in bundle["entry"]
    ]
