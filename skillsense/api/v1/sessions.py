from fastapi import APIRouter, Depends, status

from skillsense.core.security import Session, require_session
from skillsense.db import store
from skillsense.schemas.functions import SessionCreateRequest, SessionCreateResponse

router = APIRouter()


@router.post("/sessions", response_model=SessionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_session(payload: SessionCreateRequest):
    store.upsert_profile(payload.user_id, display_name=payload.display_name, email=payload.email)
    token, expires_at = store.create_session(payload.user_id)
    return SessionCreateResponse(token=token, user_id=payload.user_id, expires_at=expires_at.isoformat())


@router.delete("/sessions", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(session: Session = Depends(require_session)):
    store.delete_session(session.token)


@router.get("/sessions/me")
async def current_user(session: Session = Depends(require_session)):
    return {"user_id": session.user_id, "profile": store.get_profile(session.user_id)}
