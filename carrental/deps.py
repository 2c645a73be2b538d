"""
Request-scoped actor resolution.
Authentication happens upstream; the gateway forwards the authenticated user
as X-Actor-Id / X-Actor-Role. The id is resolved against the users table so a
blocked or removed account is rejected even with a valid header.
"""

from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.exceptions import AuthenticationError, PermissionDeniedError
from carrental.models.user import User, ROLES
from carrental.services.user_service import get_active_user


@dataclass
class Actor:
    id: int
    role: str
    user: User


def get_actor(
    x_actor_id: Optional[int] = Header(None),
    x_actor_role: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Actor:
    if x_actor_id is None or x_actor_role not in ROLES:
        raise AuthenticationError()
    user = get_active_user(db, x_actor_id)
    if not user or user.role != x_actor_role:
        raise AuthenticationError("Invalid actor")
    return Actor(id=user.id, role=user.role, user=user)


def require_roles(*roles: str):
    def checker(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            raise PermissionDeniedError("Access denied")
        return actor
    return checker
