"""
session_scope(): commit on success, rollback on error.
"""

import pytest
from sqlalchemy import select

from stock_kernel.db.engine import session_scope
from stock_kernel.models.master import Category


def _category_names(pg_session_factory) -> list[str]:
    reader = pg_session_factory()
    try:
        return list(reader.scalars(select(Category.name).order_by(Category.name)))
    finally:
        reader.close()


class TestSessionScope:
    def test_commits_on_success(self, pg_session_factory, test_actor_id):
        with session_scope() as session:
            session.add(Category(name="Fasteners", created_by_id=test_actor_id))

        assert _category_names(pg_session_factory) == ["Fasteners"]

    def test_rolls_back_and_reraises(self, pg_session_factory, test_actor_id):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Category(name="Discarded", created_by_id=test_actor_id))
                session.flush()
                raise RuntimeError("boom")

        assert _category_names(pg_session_factory) == []
