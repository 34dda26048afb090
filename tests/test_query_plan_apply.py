import unittest

from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from crud_engine.core.errors import UnsupportedPredicate
from crud_engine.services.filter_parser import build_query_plan
from crud_engine.services.gateway import SqlAlchemyGateway
from crud_engine.services.query_apply import apply_query_plan


class _ApplyBase(DeclarativeBase):
    pass


class _ApplyQueryModel(_ApplyBase):
    __tablename__ = "_plan_apply_test_model"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(50))
    qty: Mapped[int | None] = mapped_column(Integer, nullable=True)


class QueryPlanApplyTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine("sqlite+pysqlite:///:memory:")
        _ApplyBase.metadata.create_all(cls.engine)
        with Session(cls.engine) as session:
            session.add_all(
                [
                    _ApplyQueryModel(id=1, title="alpha", qty=1),
                    _ApplyQueryModel(id=2, title="beta", qty=5),
                    _ApplyQueryModel(id=3, title="gamma", qty=5),
                    _ApplyQueryModel(id=4, title="delta", qty=10),
                    _ApplyQueryModel(id=5, title="epsilon", qty=None),
                ]
            )
            session.commit()

    @classmethod
    def tearDownClass(cls):
        cls.engine.dispose()

    def _ids(self, params) -> list[int]:
        with Session(self.engine) as session:
            plan = build_query_plan(params)
            q = apply_query_plan(session.query(_ApplyQueryModel), _ApplyQueryModel, plan)
            return [row.id for row in q.all()]

    def test_inclusive_bounds_use_native_comparison(self):
        self.assertEqual(self._ids({"qty": "gte:5"}), [2, 3, 4])
        self.assertEqual(self._ids({"qty": "lte:5"}), [1, 2, 3])
        self.assertEqual(self._ids({"qty": "gt:5"}), [4])
        self.assertEqual(self._ids({"qty": "lt:5"}), [1])

    def test_equality_and_null(self):
        self.assertEqual(self._ids({"qty": "eq:5"}), [2, 3])
        self.assertEqual(self._ids({"qty": "eq:null"}), [5])
        self.assertEqual(self._ids({"qty": "neq:null"}), [1, 2, 3, 4])
        self.assertEqual(self._ids({"title": "beta"}), [2])

    def test_in_and_not_in(self):
        self.assertEqual(self._ids({"qty": "in:1,10"}), [1, 4])
        self.assertEqual(self._ids({"qty": "in:1,null"}), [1, 5])
        self.assertEqual(self._ids({"qty": "nin:5"}), [1, 4, 5])
        self.assertEqual(self._ids({"qty": "nin:5,null"}), [1, 4])
        self.assertEqual(self._ids({"title": 'in:"alpha","delta"'}), [1, 4])

    def test_predicates_combine_with_and(self):
        self.assertEqual(self._ids({"qty": "gte:5", "title": 'neq:"gamma"'}), [2, 4])

    def test_unknown_fields_are_ignored(self):
        self.assertEqual(self._ids({"nope": "eq:1", "sort_by": "nope:desc"}), [1, 2, 3, 4, 5])

    def test_sort_descending_with_id_tiebreak(self):
        self.assertEqual(self._ids({"sort_by": "qty:desc", "qty": "neq:null"}), [4, 2, 3, 1])

    def test_list_on_scalar_operator_is_rejected(self):
        with self.assertRaises(UnsupportedPredicate) as ctx:
            self._ids({"qty": "eq:1,2"})
        self.assertEqual(ctx.exception.field, "qty")

    def test_null_on_comparison_is_rejected(self):
        with self.assertRaises(UnsupportedPredicate):
            self._ids({"qty": "gt:null"})

    def test_gateway_read_pages_and_counts(self):
        with Session(self.engine) as session:
            gateway = SqlAlchemyGateway(session, _ApplyQueryModel)
            page = gateway.read(build_query_plan({"page_no": "1", "page_size": "2", "select": "title"}))
            self.assertEqual([row.id for row in page.items], [3, 4])
            self.assertEqual(page.total_count, 5)
            self.assertEqual((page.page_no, page.page_size), (1, 2))
            self.assertEqual(page.select, ["title"])

    def test_gateway_read_one_missing_returns_none(self):
        with Session(self.engine) as session:
            gateway = SqlAlchemyGateway(session, _ApplyQueryModel)
            self.assertIsNone(gateway.read_one(999))
            self.assertEqual(gateway.read_one(2).title, "beta")


if __name__ == "__main__":
    unittest.main()
