from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.repository import CrudHelper
from app.modules.categories.models.category import Category
from app.modules.posts.models.post import Post


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db
        self.crud = CrudHelper(Category, db)

    def find_by_id(self, category_id: int) -> Optional[Category]:
        return self.crud.find_by_id(category_id)

    def find_by_name(self, name: str) -> Optional[Category]:
        return self.crud.find_one(func.lower(Category.name) == name.lower())

    def find_all_with_post_counts(self) -> List[Tuple[Category, int]]:
        return (
            self.db.query(Category, func.count(Post.id))
            .outerjoin(Post, Post.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.name)
            .all()
        )

    def count_posts(self, category_id: int) -> int:
        return self.db.query(func.count(Post.id)).filter(Post.category_id == category_id).scalar()

    def create(self, **data) -> Category:
        return self.crud.create(**data)

    def update(self, category: Category, **data) -> Category:
        return self.crud.update(category, **data)

    def delete(self, category: Category) -> None:
        self.crud.delete(category)
