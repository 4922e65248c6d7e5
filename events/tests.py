from unittest import mock

from django.test import SimpleTestCase

from events import EventBus
from events.events import WarehouseOrderDispatched, WarehousePickingStarted


class EventBusTests(SimpleTestCase):
    def setUp(self) -> None:
        self.bus = EventBus()

    def test_publish_reaches_subscribers_of_the_event_type(self):
        started = mock.Mock(return_value="ok")
        dispatched = mock.Mock()
        self.bus.subscribe("warehouse.picking.started", started)
        self.bus.subscribe("warehouse.order.dispatched", dispatched)

        results = self.bus.publish(WarehousePickingStarted(order_number="O-1", user_id="u1"))

        self.assertEqual(results, ["ok"])
        started.assert_called_once()
        dispatched.assert_not_called()

    def test_subscribe_is_idempotent_and_unsubscribe_removes(self):
        handler = mock.Mock()
        self.bus.subscribe("warehouse.picking.started", handler)
        self.bus.subscribe("warehouse.picking.started", handler)

        self.bus.publish(WarehousePickingStarted(order_number="O-1"))
        self.bus.unsubscribe("warehouse.picking.started", handler)
        self.bus.publish(WarehousePickingStarted(order_number="O-1"))

        handler.assert_called_once()

    def test_handler_errors_propagate(self):
        self.bus.subscribe("warehouse.order.dispatched", mock.Mock(side_effect=RuntimeError("boom")))

        with self.assertRaises(RuntimeError):
            self.bus.publish(WarehouseOrderDispatched(order_number="O-1", document_no="IRS-1"))

    def test_event_defaults(self):
        first = WarehouseOrderDispatched(order_number="O-1", document_no="IRS-1", lines=[{"line_key": "SKU1#1"}])
        second = WarehouseOrderDispatched(order_number="O-2")

        self.assertEqual(first.get_aggregate_id(), "O-1")
        self.assertEqual(first.event_type, "warehouse.order.dispatched")
        self.assertNotEqual(first.event_id, second.event_id)
        self.assertIsNotNone(first.timestamp.tzinfo)
        self.assertEqual(second.lines, [])
