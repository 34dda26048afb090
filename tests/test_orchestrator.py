import unittest
from types import SimpleNamespace

from crud_engine.core.errors import FilterParseError, NotFound, Unauthorized
from crud_engine.schemas.envelopes import BatchResponse, Page
from crud_engine.schemas.query import Predicate, StringValue
from crud_engine.services.acl import DefaultACL
from crud_engine.services.gateway import PersistenceGateway
from crud_engine.services.hooks import DefaultHooks
from crud_engine.services.orchestrator import ResourceOrchestrator


class _RecordingGateway(PersistenceGateway):
    def __init__(self, rows=None):
        self.rows = {row.id: row for row in (rows or [])}
        self.calls: list[tuple] = []
        self._next_id = max(self.rows, default=0) + 1

    def read(self, plan):
        self.calls.append(("read", plan))
        items = list(self.rows.values())
        return Page(items=items, total_count=len(items), page_no=plan.page_no, page_size=plan.page_size)

    def read_one(self, item_id):
        self.calls.append(("read_one", item_id))
        return self.rows.get(item_id)

    def create(self, item):
        self.calls.append(("create", item))
        if getattr(item, "id", None) is None:
            item.id = self._next_id
            self._next_id += 1
        self.rows[item.id] = item
        return item

    def update(self, item):
        self.calls.append(("update", item))
        self.rows[item.id] = item
        return item

    def delete(self, item):
        self.calls.append(("delete", item))
        self.rows.pop(item.id, None)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


class _RecordingACL(DefaultACL):
    def __init__(self, allow: bool = True):
        self.allow = allow
        self.calls: list[tuple] = []

    def can_create(self, item):
        self.calls.append(("create", item))
        return self.allow

    def can_read_one(self, item):
        self.calls.append(("read_one", item))
        return self.allow

    def can_read_many(self):
        self.calls.append(("read_many",))
        return self.allow

    def can_update(self, old, new):
        self.calls.append(("update", old, new))
        return self.allow

    def can_delete(self, item):
        self.calls.append(("delete", item))
        return self.allow


class _RecordingHooks(DefaultHooks):
    def __init__(self):
        self.calls: list[str] = []

    def before_create(self, item):
        self.calls.append("before_create")
        item.name = item.name.strip()
        return item

    def before_read_one(self, item_id):
        self.calls.append("before_read_one")

    def before_read_many(self, plan):
        self.calls.append("before_read_many")
        scoped = dict(plan.predicates)
        scoped["tenant"] = Predicate(field="tenant", op="eq", value=StringValue(value="acme"))
        return plan.model_copy(update={"predicates": scoped})

    def before_update(self, item_id, new):
        self.calls.append("before_update")
        return SimpleNamespace(id=new.id, name=new.name.upper())

    def before_delete(self, item_id):
        self.calls.append("before_delete")

    def after_create(self, item):
        self.calls.append("after_create")
        return {"created": item.id}

    def after_read_one(self, item):
        self.calls.append("after_read_one")
        return {"read": item.id}

    def after_read_many(self, page):
        self.calls.append("after_read_many")
        return page

    def after_update(self, old, new):
        self.calls.append("after_update")
        return {"old": old.name, "new": new.name, "id": new.id}

    def after_delete(self, item):
        self.calls.append("after_delete")
        return {"deleted": item.id}


def _row(item_id: int, name: str) -> SimpleNamespace:
    return SimpleNamespace(id=item_id, name=name)


class OrchestratorDefaultsTests(unittest.TestCase):
    def test_defaults_pass_entities_through(self):
        gateway = _RecordingGateway([_row(1, "a")])
        orchestrator = ResourceOrchestrator(gateway)
        self.assertIsInstance(orchestrator.acl, DefaultACL)
        self.assertIsInstance(orchestrator.hooks, DefaultHooks)

        self.assertEqual(orchestrator.read_one(1).name, "a")
        created = orchestrator.create(_row(None, "b"))
        self.assertEqual(created.id, 2)
        updated = orchestrator.update(2, _row(None, "b2"))
        self.assertEqual((updated.id, updated.name), (2, "b2"))
        deleted = orchestrator.delete(1)
        self.assertEqual(deleted.id, 1)
        page = orchestrator.read_many({})
        self.assertEqual([row.id for row in page.items], [2])


class OrchestratorSequenceTests(unittest.TestCase):
    def setUp(self):
        self.gateway = _RecordingGateway([_row(1, "first"), _row(2, "second")])
        self.hooks = _RecordingHooks()

    def _orchestrator(self, allow: bool = True) -> ResourceOrchestrator:
        self.acl = _RecordingACL(allow)
        return ResourceOrchestrator(self.gateway, acl=self.acl, hooks=self.hooks)

    def test_read_many_denied_never_reaches_gateway_or_after_hook(self):
        with self.assertRaises(Unauthorized):
            self._orchestrator(allow=False).read_many({"name": "x"})
        self.assertNotIn("read", self.gateway.call_names())
        self.assertNotIn("after_read_many", self.hooks.calls)

    def test_read_many_passes_rewritten_plan_to_gateway(self):
        page = self._orchestrator().read_many({"name": "eq:\"first\""})
        self.assertEqual(page.total_count, 2)
        _, plan = self.gateway.calls[0]
        self.assertEqual(set(plan.predicates), {"name", "tenant"})
        self.assertEqual(self.hooks.calls, ["before_read_many", "after_read_many"])

    def test_read_many_parse_error_surfaces_before_authorization(self):
        with self.assertRaises(FilterParseError) as ctx:
            self._orchestrator(allow=False).read_many({"age": "gt:abc"})
        self.assertEqual(ctx.exception.key, "age")
        self.assertEqual(self.acl.calls, [])

    def test_read_one_sequence(self):
        result = self._orchestrator().read_one(1)
        self.assertEqual(result, {"read": 1})
        self.assertEqual(self.hooks.calls, ["before_read_one", "after_read_one"])

    def test_read_one_denied_runs_before_hook_only(self):
        with self.assertRaises(Unauthorized):
            self._orchestrator(allow=False).read_one(1)
        self.assertEqual(self.hooks.calls, ["before_read_one"])

    def test_missing_record_is_not_found_before_acl(self):
        orchestrator = self._orchestrator(allow=False)
        for operation in (
            lambda: orchestrator.read_one(99),
            lambda: orchestrator.update(99, _row(None, "x")),
            lambda: orchestrator.delete(99),
        ):
            with self.assertRaises(NotFound):
                operation()
        self.assertEqual(self.acl.calls, [])
        self.assertEqual(self.hooks.calls, ["before_read_one", "before_update", "before_delete"])
        self.assertNotIn("update", self.gateway.call_names())
        self.assertNotIn("delete", self.gateway.call_names())

    def test_create_checks_acl_on_transformed_item(self):
        result = self._orchestrator().create(_row(None, "  padded  "))
        self.assertEqual(result, {"created": 3})
        _, checked = self.acl.calls[0]
        self.assertEqual(checked.name, "padded")
        self.assertEqual(self.hooks.calls, ["before_create", "after_create"])

    def test_create_denied_after_transforming_hook_has_no_effects(self):
        with self.assertRaises(Unauthorized):
            self._orchestrator(allow=False).create(_row(None, "x"))
        self.assertEqual(self.hooks.calls, ["before_create"])
        self.assertNotIn("create", self.gateway.call_names())

    def test_update_persists_before_hook_result_with_existing_identifier(self):
        result = self._orchestrator().update(1, _row(42, "renamed"))
        self.assertEqual(result, {"old": "first", "new": "RENAMED", "id": 1})
        _, persisted = self.gateway.calls[-1]
        self.assertEqual(persisted.id, 1)
        self.assertEqual(persisted.name, "RENAMED")
        _, old, new = self.acl.calls[0]
        self.assertEqual((old.name, new.name), ("first", "RENAMED"))
        self.assertNotIn(42, self.gateway.rows)

    def test_side_effect_only_before_hooks_keep_the_payload(self):
        seen = []

        class _SideEffectHooks(DefaultHooks):
            def before_create(self, item):
                seen.append(("create", item.name))

            def before_update(self, item_id, new):
                seen.append(("update", item_id))

        orchestrator = ResourceOrchestrator(self.gateway, hooks=_SideEffectHooks())
        created = orchestrator.create(_row(None, "third"))
        self.assertEqual((created.id, created.name), (3, "third"))
        updated = orchestrator.update(1, _row(None, "renamed"))
        self.assertEqual((updated.id, updated.name), (1, "renamed"))
        self.assertEqual(seen, [("create", "third"), ("update", 1)])

    def test_update_denied_skips_gateway_and_after_hook(self):
        with self.assertRaises(Unauthorized):
            self._orchestrator(allow=False).update(1, _row(None, "x"))
        self.assertEqual(self.gateway.call_names(), ["read_one"])
        self.assertEqual(self.hooks.calls, ["before_update"])

    def test_delete_sequence(self):
        result = self._orchestrator().delete(2)
        self.assertEqual(result, {"deleted": 2})
        self.assertEqual(self.gateway.call_names(), ["read_one", "delete"])
        self.assertNotIn(2, self.gateway.rows)

    def test_delete_denied_keeps_record(self):
        with self.assertRaises(Unauthorized):
            self._orchestrator(allow=False).delete(2)
        self.assertIn(2, self.gateway.rows)
        self.assertEqual(self.hooks.calls, ["before_delete"])


class OrchestratorBatchTests(unittest.TestCase):
    def test_batch_runs_create_update_delete_in_order(self):
        gateway = _RecordingGateway([_row(1, "a"), _row(2, "b")])
        response = ResourceOrchestrator(gateway).apply_batch(
            create=[_row(None, "c")],
            update=[(1, _row(None, "a2"))],
            delete=[2],
        )
        self.assertIsInstance(response, BatchResponse)
        self.assertEqual([item.id for item in response.create], [3])
        self.assertEqual([item.name for item in response.update], ["a2"])
        self.assertEqual([item.id for item in response.delete], [2])
        self.assertTrue(response.api_flag)
        self.assertEqual(
            BatchResponse().model_dump(by_alias=True),
            {"create": [], "update": [], "delete": [], "__crud_engine_api": True},
        )
        self.assertEqual(gateway.call_names(), ["create", "read_one", "update", "read_one", "delete"])

    def test_batch_stops_at_first_failure(self):
        gateway = _RecordingGateway([_row(1, "a")])
        with self.assertRaises(NotFound):
            ResourceOrchestrator(gateway).apply_batch(create=[_row(None, "c")], update=[(99, _row(None, "x"))], delete=[1])
        self.assertIn(2, gateway.rows)
        self.assertIn(1, gateway.rows)


if __name__ == "__main__":
    unittest.main()
