"""Credential storage and the cookie session gate."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from bson import ObjectId
from fastapi import Depends, Request, Response
from pymongo.errors import DuplicateKeyError

from config import Settings
from database import Database, get_database
from errors import Duplicate, InvalidCredentials, InvalidInput, Unauthenticated
from logger import get_logger
from schemas import User

logger = get_logger(__name__)

SESSION_COOKIE = "user"
JWT_ALGORITHM = "HS256"
MIN_NAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str, rounds: int = 10) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def public_user(doc: Dict[str, Any]) -> Dict[str, str]:
    # Never expose the password hash
    return {"id": str(doc["_id"]), "name": doc["name"]}


# ----------------------
# Credential store
# ----------------------
class CredentialStore:
    COLLECTION = "user"

    def __init__(self, database: Database, rounds: int = 10):
        self.database = database
        self.rounds = rounds

    def create_user(self, name: Optional[str], password: Optional[str]) -> Dict[str, str]:
        name = (name or "").strip()
        if not name or not password:
            raise InvalidInput("Name and password are required")
        if len(name) < MIN_NAME_LENGTH:
            raise InvalidInput(f"Name must be at least {MIN_NAME_LENGTH} characters")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if self.database.get_documents(self.COLLECTION, {"name": name}, limit=1):
            raise Duplicate("User already exists")

        user = User(name=name, password=hash_password(password, self.rounds))
        try:
            user_id = self.database.create_document(self.COLLECTION, user.model_dump())
        except DuplicateKeyError:
            # Lost a race against a concurrent signup with the same name
            raise Duplicate("User already exists")

        logger.info("User created", user_id=user_id, name=name)
        return {"id": user_id, "name": name}

    def verify_credentials(self, name: Optional[str], password: Optional[str]) -> Dict[str, str]:
        name = (name or "").strip()
        if not name or not password:
            raise InvalidInput("Name and password are required")

        users = self.database.get_documents(self.COLLECTION, {"name": name}, limit=1)
        if not users or not verify_password(password, users[0].get("password", "")):
            logger.warning("Failed login attempt", name=name)
            raise InvalidCredentials()

        user = public_user(users[0])
        logger.info("User logged in", user_id=user["id"])
        return user

    def get_user(self, user_id: str) -> Optional[Dict[str, str]]:
        if not ObjectId.is_valid(user_id):
            return None
        users = self.database.get_documents(self.COLLECTION, {"_id": ObjectId(user_id)}, limit=1)
        return public_user(users[0]) if users else None


# ----------------------
# Session gate
# ----------------------
def create_session_token(user_id: str, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.session_ttl_hours)
    return jwt.encode({"sub": user_id, "exp": expire}, settings.secret_key, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> Optional[str]:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except jwt.PyJWTError as exc:
        logger.warning("Session token rejected", error=str(exc), error_type=type(exc).__name__)
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) else None


def _cookie_flags(settings: Settings) -> Dict[str, Any]:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
    }


def issue_session(response: Response, user_id: str, settings: Settings) -> None:
    ttl = timedelta(hours=settings.session_ttl_hours)
    response.set_cookie(
        SESSION_COOKIE,
        create_session_token(user_id, settings),
        max_age=int(ttl.total_seconds()),
        expires=datetime.now(timezone.utc) + ttl,
        **_cookie_flags(settings),
    )


def clear_session(response: Response, settings: Settings) -> None:
    response.delete_cookie(SESSION_COOKIE, **_cookie_flags(settings))


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_credential_store(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> CredentialStore:
    return CredentialStore(database, rounds=settings.bcrypt_rounds)


def require_session(
    request: Request,
    settings: Settings = Depends(get_settings),
    credentials: CredentialStore = Depends(get_credential_store),
) -> str:
    """Resolve the caller's user id from the session cookie or raise Unauthenticated."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise Unauthenticated("Authentication required")

    user_id = decode_session_token(token, settings)
    if user_id is None or credentials.get_user(user_id) is None:
        raise Unauthenticated("Authentication failed")

    return user_id
