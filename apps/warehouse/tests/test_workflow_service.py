from decimal import Decimal
from unittest import mock

from django.test import TestCase

from apps.mikro.tests.schema import create_mikro_schema, insert_customer, insert_order_line
from apps.warehouse.exceptions import WorkflowNotFoundError, WorkflowStateError, WorkflowValidationError
from apps.warehouse.gateway.service import WarehouseWorkflowService
from apps.warehouse.models import OrderWorkflow, ShelfLocation, WorkflowItem
from apps.warehouse.tests.factories import make_pending_order, make_product, order_line, set_items
from events import event_bus


class WorkflowServiceTestCase(TestCase):
    databases = {"default", "mikro"}

    def setUp(self) -> None:
        create_mikro_schema()
        self.service = WarehouseWorkflowService()

    def workflow(self, order_number="O-1") -> OrderWorkflow:
        return OrderWorkflow.objects.get(mikro_order_number=order_number)

    def item(self, line_key="SKU1#1", order_number="O-1") -> WorkflowItem:
        return WorkflowItem.objects.get(workflow__mikro_order_number=order_number, line_key=line_key)


class StartPickingTests(WorkflowServiceTestCase):
    def test_start_creates_workflow_and_items(self):
        make_pending_order("O", 1, [order_line("SKU1", 1, quantity=20), order_line("SKU2", 2, quantity=5)])
        make_product("SKU1", {"1": 20})

        detail = self.service.start_picking("O-1", "picker-1")

        workflow = self.workflow()
        self.assertEqual(workflow.status, OrderWorkflow.STATUS_PICKING)
        self.assertEqual(workflow.assigned_picker_user_id, "picker-1")
        self.assertIsNotNone(workflow.started_at)
        self.assertEqual(workflow.items.count(), 2)
        self.assertEqual(self.item().remaining_qty, Decimal("20"))
        self.assertEqual(self.item().status, WorkflowItem.STATUS_MISSING)
        self.assertEqual(self.item().stock_snapshot, Decimal("20"))
        self.assertEqual(detail["workflow"]["status"], OrderWorkflow.STATUS_PICKING)

    def test_start_is_idempotent_and_keeps_progress(self):
        make_pending_order()
        self.service.start_picking("O-1", "picker-1")
        self.service.update_item("O-1", "SKU1#1", {"picked_qty": "7", "extra_qty": "1"}, user_id="picker-1")
        first_started_at = self.workflow().started_at

        self.service.start_picking("O-1", "picker-2")

        entry = self.item()
        self.assertEqual(entry.picked_qty, Decimal("7"))
        self.assertEqual(entry.extra_qty, Decimal("1"))
        self.assertEqual(self.workflow().started_at, first_started_at)
        self.assertEqual(self.workflow().assigned_picker_user_id, "picker-2")
        self.assertEqual(OrderWorkflow.objects.count(), 1)

    def test_start_publishes_event_after_commit(self):
        make_pending_order()
        handler = mock.Mock()
        event_bus.subscribe("warehouse.picking.started", handler)
        self.addCleanup(event_bus.unsubscribe, "warehouse.picking.started", handler)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.service.start_picking("O-1", "picker-1")

        self.assertEqual(len(callbacks), 1)
        event = handler.call_args.args[0]
        self.assertEqual(event.order_number, "O-1")
        self.assertEqual(event.user_id, "picker-1")

    def test_start_requires_user_and_known_order(self):
        make_pending_order()

        with self.assertRaises(WorkflowValidationError):
            self.service.start_picking("O-1", "")
        with self.assertRaises(WorkflowNotFoundError) as ctx:
            self.service.start_picking("O-404", "picker-1")
        self.assertEqual(ctx.exception.error_code, "order_not_found")


class ResyncTests(WorkflowServiceTestCase):
    def test_remaining_only_shrinks_across_resyncs(self):
        pending = make_pending_order("O", 1, [order_line("SKU1", 1, quantity=20)])
        self.service.start_picking("O-1", "picker-1")

        set_items(pending, [order_line("SKU1", 1, quantity=20, delivered=8)])
        self.service.start_picking("O-1", "picker-1")
        self.assertEqual(self.item().remaining_qty, Decimal("12"))
        self.assertEqual(self.item().delivered_qty, Decimal("8"))

        set_items(pending, [order_line("SKU1", 1, quantity=20, delivered=2)])
        self.service.start_picking("O-1", "picker-1")
        self.assertEqual(self.item().remaining_qty, Decimal("12"))
        self.assertEqual(self.item().delivered_qty, Decimal("8"))

    def test_fully_delivered_line_is_reconciled_to_zero(self):
        pending = make_pending_order("O", 1, [order_line("SKU1", 1, quantity=5), order_line("SKU2", 2, quantity=5)])
        self.service.start_picking("O-1", "picker-1")

        set_items(pending, [order_line("SKU1", 1, quantity=5, delivered=5), order_line("SKU2", 2, quantity=5)])
        self.service.start_picking("O-1", "picker-1")

        entry = self.item("SKU1#1")
        self.assertEqual(entry.remaining_qty, Decimal("0"))
        self.assertEqual(entry.status, WorkflowItem.STATUS_PICKED)

    def test_line_missing_from_snapshot_is_zeroed_not_deleted(self):
        pending = make_pending_order("O", 1, [order_line("SKU1", 1, quantity=5), order_line("SKU2", 2, quantity=5)])
        self.service.start_picking("O-1", "picker-1")
        self.service.update_item("O-1", "SKU2#2", {"picked_qty": 2})

        set_items(pending, [order_line("SKU1", 1, quantity=5)])
        self.service.start_picking("O-1", "picker-1")

        entry = self.item("SKU2#2")
        self.assertEqual(entry.remaining_qty, Decimal("0"))
        self.assertEqual(entry.picked_qty, Decimal("2"))
        self.assertEqual(self.workflow().items.count(), 2)

    def test_new_lines_are_added(self):
        pending = make_pending_order("O", 1, [order_line("SKU1", 1, quantity=5)])
        self.service.start_picking("O-1", "picker-1")

        set_items(pending, [order_line("SKU1", 1, quantity=5), order_line("SKU3", 3, quantity=2)])
        self.service.start_picking("O-1", "picker-1")

        self.assertEqual(self.item("SKU3#3").remaining_qty, Decimal("2"))

    def test_dispatched_workflow_is_not_resynced(self):
        pending = make_pending_order()
        self.service.start_picking("O-1", "picker-1")
        OrderWorkflow.objects.filter(mikro_order_number="O-1").update(status=OrderWorkflow.STATUS_DISPATCHED)

        set_items(pending, [order_line("SKU1", 1, quantity=20, delivered=15)])
        self.service.start_picking("O-1", "picker-1")

        self.assertEqual(self.item().remaining_qty, Decimal("20"))
        self.assertEqual(self.workflow().status, OrderWorkflow.STATUS_DISPATCHED)


class UpdateItemTests(WorkflowServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        make_pending_order("O", 1, [order_line("SKU1", 1, quantity=10), order_line("SKU2", 2, quantity=4)])

    def test_update_before_start_is_rejected(self):
        with self.assertRaises(WorkflowStateError) as ctx:
            self.service.update_item("O-1", "SKU1#1", {"picked_qty": 1})

        self.assertEqual(ctx.exception.error_code, "picking_not_started")
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertFalse(OrderWorkflow.objects.exists())

    def test_partial_then_complete_picking(self):
        self.service.start_picking("O-1", "picker-1")

        self.service.update_item("O-1", "SKU1#1", {"picked_qty": "4"})
        self.assertEqual(self.item().status, WorkflowItem.STATUS_PARTIAL)
        self.assertEqual(self.item().shortage_qty, Decimal("6"))
        self.assertEqual(self.workflow().status, OrderWorkflow.STATUS_PICKING)
        self.assertIsNotNone(self.workflow().loading_started_at)
        self.assertIsNone(self.workflow().loaded_at)

        self.service.update_item("O-1", "SKU1#1", {"picked_qty": "10"})
        self.service.update_item("O-1", "SKU2#2", {"picked_qty": "4"})

        workflow = self.workflow()
        self.assertEqual(workflow.status, OrderWorkflow.STATUS_LOADED)
        self.assertIsNotNone(workflow.loaded_at)
        self.assertEqual(self.item().status, WorkflowItem.STATUS_PICKED)

    def test_reducing_pick_goes_back_to_picking(self):
        self.service.start_picking("O-1", "picker-1")
        self.service.update_item("O-1", "SKU1#1", {"picked_qty": 10})
        self.service.update_item("O-1", "SKU2#2", {"picked_qty": 4})

        self.service.update_item("O-1", "SKU2#2", {"picked_qty": 1})

        self.assertEqual(self.workflow().status, OrderWorkflow.STATUS_PICKING)

    def test_extra_quantity_marks_line_extra(self):
        self.service.start_picking("O-1", "picker-1")

        self.service.update_item("O-1", "SKU1#1", {"extra_qty": 2})

        self.assertEqual(self.item().status, WorkflowItem.STATUS_EXTRA)

    def test_shelf_code_upserts_and_clears_directory(self):
        self.service.start_picking("O-1", "picker-1")

        self.service.update_item("O-1", "SKU1#1", {"shelf_code": " A-01 "}, user_id="picker-1")
        location = ShelfLocation.objects.get(product_code="SKU1")
        self.assertEqual(location.shelf_code, "A-01")
        self.assertEqual(location.updated_by_user_id, "picker-1")
        self.assertEqual(self.item().shelf_code, "A-01")

        self.service.update_item("O-1", "SKU1#1", {"shelf_code": ""})
        self.assertFalse(ShelfLocation.objects.filter(product_code="SKU1").exists())
        self.assertIsNone(self.item().shelf_code)

    def test_invalid_payloads(self):
        self.service.start_picking("O-1", "picker-1")

        with self.assertRaises(WorkflowValidationError):
            self.service.update_item("O-1", "SKU1#1", {})
        with self.assertRaises(WorkflowValidationError) as ctx:
            self.service.update_item("O-1", "SKU1#1", {"picked_qty": "-1"})
        self.assertIn("picked_qty", ctx.exception.errors)

    def test_unknown_line(self):
        self.service.start_picking("O-1", "picker-1")

        with self.assertRaises(WorkflowNotFoundError) as ctx:
            self.service.update_item("O-1", "NOPE#9", {"picked_qty": 1})

        self.assertEqual(ctx.exception.error_code, "line_not_found")

    def test_dispatched_workflow_is_terminal(self):
        self.service.start_picking("O-1", "picker-1")
        OrderWorkflow.objects.filter(mikro_order_number="O-1").update(status=OrderWorkflow.STATUS_DISPATCHED)

        with self.assertRaises(WorkflowStateError) as ctx:
            self.service.update_item("O-1", "SKU1#1", {"picked_qty": 1})

        self.assertEqual(ctx.exception.error_code, "workflow_dispatched")


class ReadModelTests(WorkflowServiceTestCase):
    def test_detail_is_read_only(self):
        make_pending_order()

        detail = self.service.get_order_detail("O-1")

        self.assertIsNone(detail["workflow"])
        self.assertFalse(OrderWorkflow.objects.exists())
        self.assertEqual(detail["lines"][0]["remaining_qty"], Decimal("20"))
        self.assertEqual(detail["lines"][0]["picked_qty"], Decimal("0"))

    def test_detail_does_not_change_status(self):
        make_pending_order()
        self.service.start_picking("O-1", "picker-1")
        self.service.update_item("O-1", "SKU1#1", {"picked_qty": 20})
        before = self.workflow()

        self.service.get_order_detail("O-1")

        after = self.workflow()
        self.assertEqual(after.status, OrderWorkflow.STATUS_LOADED)
        self.assertEqual(after.updated_at, before.updated_at)

    def test_detail_derives_shortage_from_shrunken_snapshot(self):
        pending = make_pending_order("O", 1, [order_line("SKU1", 1, quantity=10)])
        self.service.start_picking("O-1", "picker-1")
        set_items(pending, [order_line("SKU1", 1, quantity=10, delivered=6)])

        line = self.service.get_order_detail("O-1")["lines"][0]

        self.assertEqual(line["remaining_qty"], Decimal("4"))
        self.assertEqual(line["picked_qty"], Decimal("0"))
        self.assertEqual(line["shortage_qty"], Decimal("4"))
        self.assertEqual(line["status"], WorkflowItem.STATUS_MISSING)
        self.assertEqual(self.item().remaining_qty, Decimal("10"))

    def test_detail_status_follows_shrunken_snapshot(self):
        pending = make_pending_order("O", 1, [order_line("SKU1", 1, quantity=10)])
        self.service.start_picking("O-1", "picker-1")
        self.service.update_item("O-1", "SKU1#1", {"picked_qty": 4})
        set_items(pending, [order_line("SKU1", 1, quantity=10, delivered=6)])

        line = self.service.get_order_detail("O-1")["lines"][0]

        self.assertEqual(line["shortage_qty"], Decimal("0"))
        self.assertEqual(line["status"], WorkflowItem.STATUS_PICKED)
        self.assertEqual(self.item().status, WorkflowItem.STATUS_PARTIAL)

    def test_detail_annotates_lines(self):
        insert_customer("C-2", "Other Customer")
        insert_order_line("B", 5, 1, "SKU1", customer_code="C-2", quantity=9, reserved=6, reserved_delivered=1)
        make_pending_order("O", 1, [order_line("SKU1", 1, quantity=6)])
        make_product("SKU1", {"1": 4}, image_url="https://cdn.example.com/sku1.png", unit2="KOLI", unit2_factor="0.5")
        ShelfLocation.objects.create(product_code="SKU1", shelf_code="B-02")

        detail = self.service.get_order_detail("O-1")

        line = detail["lines"][0]
        self.assertEqual(detail["coverage"]["status"], "PARTIAL")
        self.assertEqual(detail["coverage"]["covered_percent"], 67)
        self.assertEqual(line["stock_available"], Decimal("4"))
        self.assertEqual(line["stock_coverage_status"], "PARTIAL")
        self.assertEqual(line["shelf_code"], "B-02")
        self.assertEqual(line["image_url"], "https://cdn.example.com/sku1.png")
        self.assertEqual(line["unit2"], "KOLI")
        self.assertEqual(line["unit2_qty"], Decimal("3.0000"))
        self.assertFalse(line["has_open_image_issue"])
        self.assertEqual(detail["reservation_source"], "live")
        self.assertEqual(len(line["reservations"]), 1)
        reservation = line["reservations"][0]
        self.assertEqual(reservation["order_number"], "B-5")
        self.assertEqual(reservation["customer_name"], "Other Customer")
        self.assertEqual(reservation["active_qty"], Decimal("5"))
        self.assertFalse(reservation["is_current_order"])

    def test_item_shelf_wins_over_directory(self):
        make_pending_order()
        self.service.start_picking("O-1", "picker-1")
        WorkflowItem.objects.filter(line_key="SKU1#1").update(shelf_code="ITEM-1")
        ShelfLocation.objects.create(product_code="SKU1", shelf_code="DIR-1")

        detail = self.service.get_order_detail("O-1")

        self.assertEqual(detail["lines"][0]["shelf_code"], "ITEM-1")

    def test_overview_buckets_filters_and_hidden_sector(self):
        make_pending_order("A", 1, [order_line("SKU1", 1, quantity=2)], customer_name="Acme Market")
        make_pending_order("A", 2, [order_line("SKU1", 1, quantity=2)], customer_name="Beta Foods")
        make_pending_order("B", 1, [order_line("SKU1", 1, quantity=2)], customer_name="Gamma")
        make_pending_order("", 9, [order_line("SKU1", 1, quantity=2)], customer_name="No Series")
        make_pending_order("A", 3, [order_line("SKU1", 1, quantity=2)], sector_code="SATICI-01")
        make_product("SKU1", {"1": 100})
        self.service.start_picking("A-2", "picker-1")

        overview = self.service.get_overview({"series": ["A"]})

        self.assertEqual([row["order_number"] for row in overview["orders"]], ["A-2", "A-1"])
        buckets = {bucket["series"]: bucket for bucket in overview["series"]}
        self.assertEqual(sorted(buckets), ["A", "B", "DIGER"])
        self.assertEqual(buckets["A"]["total"], 2)
        self.assertEqual(buckets["A"]["pending"], 1)
        self.assertEqual(buckets["A"]["picking"], 1)
        self.assertEqual(overview["orders"][0]["workflow_status"], OrderWorkflow.STATUS_PICKING)
        self.assertEqual(overview["orders"][0]["coverage"]["status"], "FULL")

        searched = self.service.get_overview({"search": "beta"})
        self.assertEqual([row["order_number"] for row in searched["orders"]], ["A-2"])

        picking = self.service.get_overview({"status": "picking", "series": "A,B"})
        self.assertEqual([row["order_number"] for row in picking["orders"]], ["A-2"])

    def test_status_map(self):
        make_pending_order()
        self.service.start_picking("O-1", "picker-1")

        status_map = self.service.get_workflow_status_map(["O-1", "O-404", ""])

        self.assertEqual(list(status_map), ["O-1"])
        self.assertEqual(status_map["O-1"]["status"], OrderWorkflow.STATUS_PICKING)
        self.assertIsNotNone(status_map["O-1"]["updated_at"])
