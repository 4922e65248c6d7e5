import uuid

from django.test import TestCase

from apps.warehouse import shelves
from apps.warehouse.exceptions import WorkflowNotFoundError, WorkflowValidationError
from apps.warehouse.gateway import warehouse_workflow_service as service
from apps.warehouse.models import DispatchDriver, DispatchVehicle, ShelfLocation


class ShelfDirectoryTests(TestCase):
    def test_set_is_last_write_wins(self):
        shelves.set_shelf("SKU1", "A-01", user_id="u1")
        shelves.set_shelf("SKU1", "B-07", user_id="u2")

        location = ShelfLocation.objects.get(product_code="SKU1")
        self.assertEqual(location.shelf_code, "B-07")
        self.assertEqual(location.updated_by_user_id, "u2")
        self.assertEqual(shelves.shelf_map(["SKU1"]), {"SKU1": "B-07"})

    def test_empty_shelf_deletes_entry(self):
        shelves.set_shelf("SKU1", "A-01")

        self.assertIsNone(shelves.set_shelf("SKU1", "   "))
        self.assertFalse(ShelfLocation.objects.filter(product_code="SKU1").exists())

    def test_shelf_map(self):
        shelves.set_shelf("SKU1", "A-01")
        shelves.set_shelf("SKU2", "A-02")

        self.assertEqual(shelves.shelf_map(["SKU1", "SKU3", ""]), {"SKU1": "A-01"})
        self.assertEqual(shelves.shelf_map([]), {})


class DispatchCatalogTests(TestCase):
    def test_driver_crud(self):
        created = service.create_dispatch_driver(
            {"first_name": "Ali", "last_name": "Yilmaz", "tc_no": "12345678901"}
        )
        self.assertTrue(created["is_active"])

        updated = service.update_dispatch_driver(created["id"], {"is_active": False, "note": "on leave"})
        self.assertFalse(updated["is_active"])
        self.assertEqual(updated["note"], "on leave")

        self.assertEqual(service.get_dispatch_catalog()["drivers"], [])
        self.assertEqual(len(service.get_dispatch_catalog(include_inactive=True)["drivers"]), 1)

        service.delete_dispatch_driver(created["id"])
        self.assertFalse(DispatchDriver.objects.exists())

    def test_driver_tc_no_must_have_eleven_digits(self):
        with self.assertRaises(WorkflowValidationError) as ctx:
            service.create_dispatch_driver({"first_name": "Ali", "last_name": "Yilmaz", "tc_no": "12AB"})

        self.assertIn("tc_no", ctx.exception.errors)

    def test_vehicle_plate_is_normalized_and_unique(self):
        created = service.create_dispatch_vehicle({"name": "Kamyon", "plate": "34 abc 123"})
        self.assertEqual(created["plate"], "34ABC123")

        with self.assertRaises(WorkflowValidationError):
            service.create_dispatch_vehicle({"name": "Other", "plate": "34abc123"})

        updated = service.update_dispatch_vehicle(created["id"], {"plate": "34 ABC 123", "name": "Kamyon 2"})
        self.assertEqual(updated["name"], "Kamyon 2")

        service.delete_dispatch_vehicle(created["id"])
        self.assertFalse(DispatchVehicle.objects.exists())

    def test_unknown_ids(self):
        with self.assertRaises(WorkflowNotFoundError) as ctx:
            service.update_dispatch_driver(uuid.uuid4(), {"note": "x"})
        self.assertEqual(ctx.exception.error_code, "driver_not_found")

        with self.assertRaises(WorkflowNotFoundError) as ctx:
            service.delete_dispatch_vehicle("garbage")
        self.assertEqual(ctx.exception.error_code, "vehicle_not_found")
