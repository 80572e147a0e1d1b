from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..crud.canvases import get_preferences, update_preferences
from ..db.session import get_db
from ..deps.auth import require_user
from ..models.user import User
from ..schemas.canvas import PreferencesIn, PreferencesOut

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("", response_model=PreferencesOut)
def api_get_preferences(db: Session = Depends(get_db), user: User = Depends(require_user)):
    return PreferencesOut(settings=get_preferences(db, user.id))


@router.put("", response_model=PreferencesOut)
def api_update_preferences(
    payload: PreferencesIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    return PreferencesOut(settings=update_preferences(db, user.id, payload.settings))
