from django.db import DatabaseError, IntegrityError
from django.test import SimpleTestCase

from apps.mikro.exceptions import MikroQueryError
from apps.warehouse.error_codes import classify_exception
from apps.warehouse.exceptions import (
    DispatchReconciliationError,
    MikroUnavailableError,
    WorkflowConfigurationError,
    WorkflowNotFoundError,
    WorkflowStateError,
    WorkflowValidationError,
)
from apps.warehouse.gateway.settings import WorkflowSettings


class ClassifyExceptionTests(SimpleTestCase):
    def test_domain_errors(self):
        cases = [
            (WorkflowValidationError("bad"), ("validation_error", False, 400)),
            (WorkflowStateError("nope", error_code="picking_not_started"), ("picking_not_started", False, 409)),
            (WorkflowNotFoundError("missing"), ("not_found", False, 404)),
            (MikroUnavailableError(), ("mikro_unavailable", True, 503)),
            (DispatchReconciliationError("half", document_no="IRS-1"), ("local_reconciliation_failed", False, 500)),
            (WorkflowConfigurationError("cfg"), ("configuration_error", False, 500)),
        ]
        for exc, expected in cases:
            with self.subTest(exc=type(exc).__name__):
                self.assertEqual(classify_exception(exc), expected)

    def test_infrastructure_errors(self):
        self.assertEqual(classify_exception(MikroQueryError("timeout")), ("mikro_unavailable", True, 503))
        self.assertEqual(classify_exception(IntegrityError("dup")), ("database_error", True, 503))
        self.assertEqual(classify_exception(DatabaseError("gone")), ("database_error", True, 503))
        self.assertEqual(classify_exception(ValueError("x")), ("unexpected_error", False, 500))


class WorkflowSettingsTests(SimpleTestCase):
    def test_vat_code_lookups(self):
        settings = WorkflowSettings({"vat_code_map": {"4": "0.18", 8: "0.18", 7: "0.10"}})

        self.assertEqual(str(settings.vat_rate_for_code("4")), "0.18")
        self.assertIsNone(settings.vat_rate_for_code("x"))
        self.assertEqual(settings.vat_code_for_rate(settings.vat_rate_for_code(4)), 4)
        self.assertEqual(settings.vat_code_for_rate(settings.vat_rate_for_code(4), preferred=8), 8)
        self.assertIsNone(settings.vat_code_for_rate(settings.vat_rate_for_code(7) * 3))

    def test_invalid_configuration(self):
        with self.assertRaises(WorkflowConfigurationError):
            WorkflowSettings({"vat_code_map": {"4": "eighteen"}}).vat_code_map
        with self.assertRaises(WorkflowConfigurationError):
            WorkflowSettings(["not", "a", "dict"])

    def test_stock_warehouses_accepts_comma_separated_string(self):
        self.assertEqual(WorkflowSettings({"stock_warehouses": "1, 2,,"}).stock_warehouses, ["1", "2"])
        self.assertEqual(WorkflowSettings({}).delivery_document_type, 1)
