"""Method-correct HTTP routes: auth, tasks and pomodoro records."""
import json
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ValidationError

from auth import (
    CredentialStore,
    clear_session,
    get_credential_store,
    get_settings,
    issue_session,
    require_session,
)
from config import Settings
from errors import InvalidInput
from logger import get_logger
from reports import RecordStore, get_record_store
from tasks import TaskStore, get_task_store

router = APIRouter()
logger = get_logger(__name__)

Number = Union[int, float, str]
ModelT = TypeVar("ModelT", bound=BaseModel)

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def envelope(data: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    return body


# ----------------------
# Models
# ----------------------
class CredentialsPayload(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None


class AddTaskPayload(BaseModel):
    name: Optional[str] = None
    num: Optional[Number] = None


class UpdateTaskPayload(BaseModel):
    finish: Optional[Number] = None


def request_body(model: Type[ModelT]) -> Callable:
    """Dependency reading ``model`` from either a JSON or a form-encoded body."""

    async def parse(request: Request) -> ModelT:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(FORM_TYPES):
            data = dict(await request.form())
        else:
            raw = await request.body()
            try:
                data = json.loads(raw) if raw.strip() else {}
            except ValueError:
                raise InvalidInput("Malformed JSON body")

        if not isinstance(data, dict):
            raise InvalidInput("Request body must be an object")
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise InvalidInput(f"{field}: {first.get('msg')}" if field else str(first.get("msg")))

    return parse


# ----------------------
# Auth
# ----------------------
@router.post("/signup", status_code=201)
def signup(
    response: Response,
    payload: CredentialsPayload = Depends(request_body(CredentialsPayload)),
    credentials: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    user = credentials.create_user(payload.name, payload.password)
    issue_session(response, user["id"], settings)
    return envelope(user)


@router.post("/login")
def login(
    response: Response,
    payload: CredentialsPayload = Depends(request_body(CredentialsPayload)),
    credentials: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    user = credentials.verify_credentials(payload.name, payload.password)
    issue_session(response, user["id"], settings)
    return envelope(user)


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    clear_session(response, settings)
    logger.info("User logged out")
    return envelope()


@router.get("/auth/status")
def auth_status(
    user_id: str = Depends(require_session),
    credentials: CredentialStore = Depends(get_credential_store),
):
    return envelope({"authenticated": True, "user": credentials.get_user(user_id)})


# ----------------------
# Tasks
# ----------------------
@router.get("/getTasks")
def get_tasks(user_id: str = Depends(require_session), tasks: TaskStore = Depends(get_task_store)):
    return envelope(tasks.list(user_id))


@router.post("/addTask", status_code=201)
def add_task(
    user_id: str = Depends(require_session),
    payload: AddTaskPayload = Depends(request_body(AddTaskPayload)),
    tasks: TaskStore = Depends(get_task_store),
):
    return envelope(tasks.add(user_id, payload.name, payload.num))


@router.patch("/updateTask/{task_id}")
def update_task(
    task_id: str,
    user_id: str = Depends(require_session),
    payload: UpdateTaskPayload = Depends(request_body(UpdateTaskPayload)),
    tasks: TaskStore = Depends(get_task_store),
):
    return envelope(tasks.update(user_id, task_id, payload.finish))


@router.delete("/deleteTask/{task_id}")
def delete_task(
    task_id: str,
    user_id: str = Depends(require_session),
    tasks: TaskStore = Depends(get_task_store),
):
    return envelope(tasks.remove(user_id, task_id))


@router.delete("/deleteAll")
def delete_all(user_id: str = Depends(require_session), tasks: TaskStore = Depends(get_task_store)):
    data: List[Dict[str, Any]] = tasks.remove_all(user_id)
    return envelope(data)


# ----------------------
# Records
# ----------------------
@router.post("/recordAdd", status_code=201)
def record_add(user_id: str = Depends(require_session), records: RecordStore = Depends(get_record_store)):
    records.append(user_id)
    return envelope()


@router.get("/report")
def report(user_id: str = Depends(require_session), records: RecordStore = Depends(get_record_store)):
    return envelope(records.weekly_report(user_id))
