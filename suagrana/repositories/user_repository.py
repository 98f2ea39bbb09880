from sqlalchemy import func
from sqlalchemy.orm import Session
from suagrana.models.user import User


class UserRepository:
    """Repository for User model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup, emails are stored lower-cased"""
        return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def create_no_commit(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def update(self, user: User) -> User:
        self.db.commit()
        self.db.refresh(user)
        return user
