from contextlib import contextmanager
from typing import Any, Generic, Iterator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.orm import Session

from app.db.session import Base

ModelType = TypeVar("ModelType", bound=Base)

_TX_DEPTH = "tx_depth"


class CrudHelper(Generic[ModelType]):
    """
    Generic data access for one model, held by each entity repository.

    Writes commit immediately unless they run inside ``transaction()``,
    in which case they only flush and the outermost block commits.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def _persist(self) -> None:
        if self.db.info.get(_TX_DEPTH, 0):
            self.db.flush()
        else:
            self.db.commit()

    def find_by_id(self, id: Any, options: Sequence[Any] = ()) -> Optional[ModelType]:
        query = self.db.query(self.model)
        if options:
            query = query.options(*options)
        return query.filter(self.model.id == id).first()

    def find_all(
        self,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        options: Sequence[Any] = (),
    ) -> List[ModelType]:
        query = self.db.query(self.model)
        if options:
            query = query.options(*options)
        if criteria:
            query = query.filter(*criteria)
        if order_by:
            query = query.order_by(*order_by)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def find_one(self, *criteria: Any, options: Sequence[Any] = ()) -> Optional[ModelType]:
        query = self.db.query(self.model)
        if options:
            query = query.options(*options)
        return query.filter(*criteria).first()

    def create(self, **data: Any) -> ModelType:
        obj = self.model(**data)
        self.db.add(obj)
        self._persist()
        self.db.refresh(obj)
        return obj

    def update(self, obj: ModelType, **data: Any) -> ModelType:
        for field, value in data.items():
            setattr(obj, field, value)
        self.db.add(obj)
        self._persist()
        self.db.refresh(obj)
        return obj

    def delete(self, obj: ModelType) -> ModelType:
        self.db.delete(obj)
        self._persist()
        return obj

    def count(self, *criteria: Any) -> int:
        query = self.db.query(self.model)
        if criteria:
            query = query.filter(*criteria)
        return query.count()

    def exists(self, *criteria: Any) -> bool:
        return self.db.query(self.db.query(self.model).filter(*criteria).exists()).scalar()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        depth = self.db.info.get(_TX_DEPTH, 0)
        self.db.info[_TX_DEPTH] = depth + 1
        try:
            yield self.db
            if depth == 0:
                self.db.info[_TX_DEPTH] = 0
                self.db.commit()
        except Exception:
            if depth == 0:
                self.db.rollback()
            raise
        finally:
            self.db.info[_TX_DEPTH] = depth
