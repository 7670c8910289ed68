from sqlalchemy import select

from app.stockflow.db.models import User


class UserRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, user_id: int):
        return self.db.get(User, user_id)

    def get_active(self, user_id: int):
        stmt = select(User).where(User.id == user_id, User.is_active.is_(True), User.deleted_at.is_(None))
        return self.db.execute(stmt).scalars().first()

    def get_by_username(self, username: str):
        stmt = select(User).where(User.username == username)
        return self.db.execute(stmt).scalars().first()
