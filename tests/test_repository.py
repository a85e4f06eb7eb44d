import pytest

from app.db.repository import CrudHelper
from app.modules.categories.models.category import Category


def test_create_find_update_delete(db):
    crud = CrudHelper(Category, db)

    category = crud.create(name="Books", description="Paperbacks")
    assert crud.find_by_id(category.id).name == "Books"

    crud.update(category, description="Hardcovers")
    assert crud.find_one(Category.name == "Books").description == "Hardcovers"
    assert crud.exists(Category.name == "Books")
    assert crud.count() == 1

    crud.delete(category)
    assert crud.find_by_id(category.id) is None


def test_find_all_orders_and_pages(db):
    crud = CrudHelper(Category, db)
    for name in ("Charlie", "Alpha", "Bravo"):
        crud.create(name=name)

    names = [c.name for c in crud.find_all(order_by=(Category.name.asc(),), offset=1, limit=1)]

    assert names == ["Bravo"]


def test_transaction_rolls_back_every_write(db):
    crud = CrudHelper(Category, db)

    with pytest.raises(RuntimeError):
        with crud.transaction():
            crud.create(name="Kept only on commit")
            raise RuntimeError("boom")

    assert crud.count() == 0


def test_nested_transaction_commits_once_at_outermost(db):
    crud = CrudHelper(Category, db)

    with crud.transaction():
        crud.create(name="Outer")
        with crud.transaction():
            crud.create(name="Inner")
        assert db.info["tx_depth"] == 1

    assert db.info["tx_depth"] == 0
    assert crud.count() == 2
