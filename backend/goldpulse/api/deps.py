from collections.abc import Generator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from goldpulse.db.session import SessionLocal
from goldpulse.models.retailer import Retailer
from goldpulse.models.user import User


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    db: Session = Depends(get_db),
    x_user_id: int | None = Header(default=None),
) -> User:
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
        )
    user = db.get(User, x_user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user.",
        )
    return user


def get_active_retailer_id(db: Session, user: User) -> int:
    retailer = db.get(Retailer, user.retailer_id)
    if retailer is None or not retailer.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Retailer is not active.")
    return retailer.id
