"""Local user bootstrap."""

from __future__ import annotations

from sqlmodel import select

from ..infra.database import SessionFactory
from ..models.user import User

LOCAL_USERNAME = "local"


def ensure_local_user(session_factory: SessionFactory, username: str = LOCAL_USERNAME) -> User:
    """Create or return the device's ledger owner."""

    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
            return user
        user = User(username=username)
        session.add(user)
        session.flush()
        session.refresh(user)
        session.expunge(user)
        return user
