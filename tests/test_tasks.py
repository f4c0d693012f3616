"""Task list routes and TaskStore."""
import pytest
from bson import ObjectId

from errors import InvalidInput, NotFound
from tasks import MAX_COUNT, TaskStore, coerce_finish, coerce_target


def add(client, name, num=None):
    payload = {"name": name}
    if num is not None:
        payload["num"] = num
    response = client.post("/addTask", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_get_tasks_empty(client, signup):
    signup()
    response = client.get("/getTasks")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": []}


def test_add_returns_full_list_in_creation_order(client, signup):
    signup()
    first = add(client, "Write report", 3)
    assert [task["name"] for task in first] == ["Write report"]

    tasks = add(client, "Read paper", 2)
    assert [task["name"] for task in tasks] == ["Write report", "Read paper"]
    assert client.get("/getTasks").json()["data"] == tasks

    task = tasks[0]
    assert task["num"] == 3
    assert task["finish"] == 0
    assert set(task) == {"_id", "name", "num", "finish", "user", "createdAt", "updatedAt"}


def test_add_trims_name_and_defaults_target(client, signup):
    signup()
    tasks = add(client, "  Inbox zero  ")
    assert tasks[0]["name"] == "Inbox zero"
    assert tasks[0]["num"] == 1

    tasks = add(client, "Gym", "lots")
    assert tasks[-1]["num"] == 1


@pytest.mark.parametrize("name", ["", "   ", None])
def test_add_rejects_blank_name(client, signup, name):
    signup()
    response = client.post("/addTask", json={"name": name, "num": 2})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Task name is required"}


def test_update_changes_only_finish(client, signup):
    signup()
    add(client, "First", 4)
    before = add(client, "Second", 2)
    target = before[0]

    response = client.patch(f"/updateTask/{target['_id']}", json={"finish": 3})

    assert response.status_code == 200
    after = response.json()["data"]
    assert after[0]["finish"] == 3
    assert after[0]["num"] == 4
    assert after[0]["name"] == "First"
    assert after[1] == before[1]


def test_update_requires_finish(client, signup):
    signup()
    task = add(client, "First")[0]

    response = client.patch(f"/updateTask/{task['_id']}", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Finish value is required"


@pytest.mark.parametrize("task_id", ["not-an-id", str(ObjectId())])
def test_update_unknown_task(client, signup, task_id):
    signup()
    response = client.patch(f"/updateTask/{task_id}", json={"finish": 1})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Task not found"}


def test_delete_task(client, signup):
    signup()
    add(client, "First")
    tasks = add(client, "Second")

    response = client.delete(f"/deleteTask/{tasks[0]['_id']}")

    assert response.status_code == 200
    assert [task["name"] for task in response.json()["data"]] == ["Second"]
    assert client.delete(f"/deleteTask/{tasks[0]['_id']}").status_code == 404


def test_delete_all(client, signup):
    signup()
    empty = client.delete("/deleteAll")
    assert empty.status_code == 200
    assert empty.json() == {"success": True, "data": []}

    add(client, "First")
    add(client, "Second")
    response = client.delete("/deleteAll")
    assert response.json()["data"] == []
    assert client.get("/getTasks").json()["data"] == []


def test_tasks_are_owner_scoped(client, signup, database):
    signup("alice")
    alice_task = add(client, "Alice task")[0]

    signup("bob")
    assert client.get("/getTasks").json()["data"] == []
    bob_tasks = add(client, "Bob task")

    assert client.patch(f"/updateTask/{alice_task['_id']}", json={"finish": 5}).status_code == 404
    assert client.delete(f"/deleteTask/{alice_task['_id']}").status_code == 404

    client.delete("/deleteAll")
    stored = database["task"].find_one({"_id": ObjectId(alice_task["_id"])})
    assert stored is not None
    assert stored["finish"] == 0
    assert database["task"].count_documents({"user": bob_tasks[0]["user"]}) == 0


def test_task_routes_require_session(client):
    assert client.get("/getTasks").status_code == 401
    assert client.post("/addTask", json={"name": "x"}).status_code == 401
    assert client.patch(f"/updateTask/{ObjectId()}", json={"finish": 1}).status_code == 401
    assert client.delete(f"/deleteTask/{ObjectId()}").status_code == 401
    assert client.delete("/deleteAll").status_code == 401


class TestTaskStore:
    @pytest.fixture()
    def store(self, database):
        return TaskStore(database)

    def test_list_is_scoped_and_ordered(self, store):
        store.add("u1", "a")
        store.add("u2", "other")
        tasks = store.add("u1", "b")

        assert [task["name"] for task in tasks] == ["a", "b"]
        assert [task["name"] for task in store.list("u2")] == ["other"]

    def test_update_other_users_task(self, store):
        task_id = store.add("u1", "a")[0]["_id"]
        with pytest.raises(NotFound):
            store.update("u2", task_id, 1)
        assert store.update("u1", task_id, "2")[0]["finish"] == 2

    def test_remove_all_leaves_other_users(self, store):
        store.add("u1", "a")
        store.add("u2", "b")

        assert store.remove_all("u1") == []
        assert store.list("u1") == []
        assert len(store.list("u2")) == 1


@pytest.mark.parametrize(
    "value,expected",
    [(None, 1), ("", 1), ("abc", 1), (0, 1), (-3, 1), ("4", 4), (2, 2), (2.9, 2), (True, 1)],
)
def test_coerce_target(value, expected):
    assert coerce_target(value) == expected


@pytest.mark.parametrize("value", [None, "", "abc", -1, "-2"])
def test_coerce_finish_rejects(value):
    with pytest.raises(InvalidInput):
        coerce_finish(value)


def test_coerce_finish_accepts_numeric_strings():
    assert coerce_finish("0") == 0
    assert coerce_finish(7) == 7


def post_raw(client, method, url, body):
    return client.request(method, url, content=body, headers={"Content-Type": "application/json"})


def test_add_with_overflowing_target_defaults_to_one(client, signup):
    signup()
    response = post_raw(client, "POST", "/addTask", '{"name": "Huge", "num": 1e400}')

    assert response.status_code == 201
    assert response.json()["data"][0]["num"] == 1

    tasks = add(client, "Bigger", 10**30)
    assert tasks[-1]["num"] == 1


@pytest.mark.parametrize("body", ['{"finish": 1e400}', '{"finish": 1000000000000000000000000000000}'])
def test_update_with_overflowing_finish_is_rejected(client, signup, database, body):
    signup()
    task = add(client, "First")[0]

    response = post_raw(client, "PATCH", f"/updateTask/{task['_id']}", body)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Finish must be a non-negative integer"}
    assert database["task"].find_one({"_id": ObjectId(task["_id"])})["finish"] == 0


def test_task_routes_accept_form_bodies(client, signup):
    signup()
    response = client.post("/addTask", data={"name": "Form task", "num": "2"})
    assert response.status_code == 201
    task = response.json()["data"][0]
    assert task["num"] == 2

    response = client.patch(f"/updateTask/{task['_id']}", data={"finish": "1"})
    assert response.status_code == 200
    assert response.json()["data"][0]["finish"] == 1


def test_non_object_body_is_rejected(client, signup):
    signup()
    response = post_raw(client, "POST", "/addTask", '["Focus"]')

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_coerce_bounds():
    assert coerce_target(MAX_COUNT) == MAX_COUNT
    assert coerce_target(MAX_COUNT + 1) == 1
    assert coerce_target(float("inf")) == 1
    assert coerce_finish(MAX_COUNT) == MAX_COUNT
    with pytest.raises(InvalidInput):
        coerce_finish(MAX_COUNT + 1)
    with pytest.raises(InvalidInput):
        coerce_finish(float("inf"))
