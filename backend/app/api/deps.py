from __future__ import annotations

from typing import Generator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from backend.app.db.session import SessionLocal
from backend.app.db.models.models_v1 import User


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor_id(
    actor_id: int | None = Header(default=None, alias="X-Actor-Id"),
    db: Session = Depends(get_db),
) -> int:
    """Identité déjà authentifiée, fournie en amont (gateway / auth)."""
    if actor_id is None:
        raise HTTPException(status_code=401, detail="Missing X-Actor-Id header")
    user = db.get(User, actor_id)
    if not user or not user.active:
        raise HTTPException(status_code=401, detail="Unknown or inactive actor")
    return int(user.id)
