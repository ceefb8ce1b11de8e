from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from studyplan.db.session import get_db
from studyplan.models.user import User


def get_current_user(
    user_id: int = Header(..., alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the X-User-Id header set by the auth gateway."""
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
        )
    return user
