import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AlreadyExistsError, ConflictError, NotFoundError
from app.modules.categories.models.category import Category
from app.modules.categories.repositories.category import CategoryRepository
from app.modules.categories.schemas.category import CategoryCreate, CategoryOut, CategoryUpdate

logger = logging.getLogger("app")


def _to_out(category: Category, post_count: int) -> CategoryOut:
    out = CategoryOut.model_validate(category)
    out.post_count = post_count
    return out


class CategoryService:
    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryRepository(db)

    def _duplicate_name(self) -> AlreadyExistsError:
        self.db.rollback()
        return AlreadyExistsError("Category with this name already exists")

    def _get(self, category_id: int) -> Category:
        category = self.categories.find_by_id(category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def list_categories(self) -> List[CategoryOut]:
        return [_to_out(category, count) for category, count in self.categories.find_all_with_post_counts()]

    def get_category(self, category_id: int) -> CategoryOut:
        category = self._get(category_id)
        return _to_out(category, self.categories.count_posts(category.id))

    def create_category(self, data: CategoryCreate) -> CategoryOut:
        if self.categories.find_by_name(data.name):
            raise AlreadyExistsError("Category with this name already exists")
        try:
            category = self.categories.create(**data.model_dump())
        except IntegrityError:
            raise self._duplicate_name()
        logger.info(f"Created category {category.id} ({category.name})")
        return _to_out(category, 0)

    def update_category(self, category_id: int, data: CategoryUpdate) -> CategoryOut:
        category = self._get(category_id)
        update_data = data.model_dump(exclude_unset=True)

        new_name = update_data.get("name")
        if new_name:
            existing = self.categories.find_by_name(new_name)
            if existing and existing.id != category.id:
                raise AlreadyExistsError("Category with this name already exists")

        try:
            category = self.categories.update(category, **update_data)
        except IntegrityError:
            raise self._duplicate_name()
        return _to_out(category, self.categories.count_posts(category.id))

    def delete_category(self, category_id: int) -> None:
        category = self._get(category_id)
        post_count = self.categories.count_posts(category.id)
        if post_count:
            raise ConflictError(f"Cannot delete category with {post_count} existing posts")
        self.categories.delete(category)
        logger.info(f"Deleted category {category_id}")
