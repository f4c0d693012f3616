"""GET aliases kept for older clients.

Each alias reads its parameters from the query string and delegates to the
method-correct route in ``routes``.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

import routes
from auth import CredentialStore, get_credential_store, get_settings, require_session
from config import Settings
from reports import RecordStore, get_record_store
from tasks import TaskStore, get_task_store

router = APIRouter(tags=["legacy"])


@router.get("/signup", status_code=201)
def signup(
    response: Response,
    name: Optional[str] = None,
    password: Optional[str] = None,
    credentials: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    payload = routes.CredentialsPayload(name=name, password=password)
    return routes.signup(response=response, payload=payload, credentials=credentials, settings=settings)


@router.get("/login")
def login(
    response: Response,
    name: Optional[str] = None,
    password: Optional[str] = None,
    credentials: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings),
):
    payload = routes.CredentialsPayload(name=name, password=password)
    return routes.login(response=response, payload=payload, credentials=credentials, settings=settings)


@router.get("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    return routes.logout(response, settings)


@router.get("/addTask", status_code=201)
def add_task(
    name: Optional[str] = None,
    num: Optional[str] = None,
    user_id: str = Depends(require_session),
    tasks: TaskStore = Depends(get_task_store),
):
    payload = routes.AddTaskPayload(name=name, num=num)
    return routes.add_task(user_id=user_id, payload=payload, tasks=tasks)


@router.get("/updateTask")
def update_task(
    task_id: Optional[str] = Query(None, alias="id"),
    finish: Optional[str] = None,
    user_id: str = Depends(require_session),
    tasks: TaskStore = Depends(get_task_store),
):
    payload = routes.UpdateTaskPayload(finish=finish)
    return routes.update_task(task_id=task_id, user_id=user_id, payload=payload, tasks=tasks)


@router.get("/deleteTask")
def delete_task(
    task_id: Optional[str] = Query(None, alias="id"),
    user_id: str = Depends(require_session),
    tasks: TaskStore = Depends(get_task_store),
):
    return routes.delete_task(task_id, user_id, tasks)


@router.get("/deleteAll")
def delete_all(user_id: str = Depends(require_session), tasks: TaskStore = Depends(get_task_store)):
    return routes.delete_all(user_id, tasks)


@router.get("/recordAdd", status_code=201)
def record_add(user_id: str = Depends(require_session), records: RecordStore = Depends(get_record_store)):
    return routes.record_add(user_id, records)
