from typing import Annotated, List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from appbase_backend.auth.service import AuthService
from appbase_backend.database import get_db
from appbase_backend.interface.base import OkResponse
from appbase_backend.interface.sessions import SessionCount, SessionInfo, SessionsRevoked
from appbase_backend.permissions.guard import get_current_principal
from appbase_backend.permissions.principal import Principal

sessions_router = APIRouter()

@sessions_router.get("", response_model=List[SessionInfo])
def list_sessions(principal: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):
    """Active sessions of the caller, current one first"""
    return AuthService(db).list_sessions(principal.user_id, principal.session_token)

@sessions_router.get("/count", response_model=SessionCount)
def count_sessions(principal: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):
    return SessionCount(active=AuthService(db).count_active_sessions(principal.user_id))

@sessions_router.delete("/{session_token}", response_model=OkResponse)
def revoke_session(
    session_token: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Session = Depends(get_db)
):
    AuthService(db).revoke_session(principal.user_id, principal.session_token, session_token)
    return OkResponse()

@sessions_router.post("/revoke-others", response_model=SessionsRevoked)
def revoke_other_sessions(principal: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):
    return SessionsRevoked(revoked=AuthService(db).revoke_other_sessions(principal.user_id, principal.session_token))

@sessions_router.post("/revoke-all", response_model=SessionsRevoked)
def revoke_all_sessions(principal: Annotated[Principal, Depends(get_current_principal)], db: Session = Depends(get_db)):
    return SessionsRevoked(revoked=AuthService(db).revoke_all_sessions(principal.user_id))
