from fastapi import Header
from coachbooks.db.session import SessionLocal

def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()

def acting_user(x_acting_user: str | None = Header(default=None)) -> str:
    # Authentication lives upstream; the caller only names who is acting.
    return (x_acting_user or "").strip() or "system"
