from typing import Optional

from sqlalchemy.orm import Session

from app.db.repository import CrudHelper
from app.modules.user_management.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.crud = CrudHelper(User, db)

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.crud.find_by_id(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.crud.find_one(User.email == email.lower())

    def find_by_phone_number(self, phone_number: str) -> Optional[User]:
        return self.crud.find_one(User.phone_number == phone_number)

    def find_by_oauth(self, provider: str, provider_id: str) -> Optional[User]:
        return self.crud.find_one(User.oauth_provider == provider, User.oauth_provider_id == provider_id)

    def phone_in_use(self, phone_number: str, exclude_user_id: Optional[int] = None) -> bool:
        criteria = [User.phone_number == phone_number]
        if exclude_user_id is not None:
            criteria.append(User.id != exclude_user_id)
        return self.crud.exists(*criteria)

    def create(self, **data) -> User:
        return self.crud.create(**data)

    def update(self, user: User, **data) -> User:
        return self.crud.update(user, **data)
