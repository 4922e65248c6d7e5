class WarehouseError(Exception):
    """Base error of the warehouse workflow engine."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "warehouse_error",
        retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.retryable = retryable
        self.status_code = status_code


class WorkflowValidationError(WarehouseError):
    """Raised when caller input is missing or invalid."""

    def __init__(self, message: str, *, errors: dict | None = None, error_code: str = "validation_error"):
        super().__init__(message, error_code=error_code, retryable=False, status_code=400)
        self.errors = errors or {}


class WorkflowStateError(WarehouseError):
    """Raised when the workflow is not in a state that allows the operation."""

    def __init__(self, message: str, *, error_code: str = "invalid_state"):
        super().__init__(message, error_code=error_code, retryable=False, status_code=409)


class WorkflowNotFoundError(WarehouseError):
    def __init__(self, message: str, *, error_code: str = "not_found"):
        super().__init__(message, error_code=error_code, retryable=False, status_code=404)


class MikroUnavailableError(WarehouseError):
    """Raised when Mikro could not be reached or rejected a statement; safe to retry."""

    def __init__(self, message: str = "Mikro ERP şu anda erişilemiyor."):
        super().__init__(message, error_code="mikro_unavailable", retryable=True, status_code=503)


class DispatchReconciliationError(WarehouseError):
    """Raised when Mikro committed a delivery note but local bookkeeping failed.

    Retrying would write a second delivery note; the document number is kept so
    an operator can reconcile by hand.
    """

    def __init__(self, message: str, *, document_no: str):
        super().__init__(
            message,
            error_code="local_reconciliation_failed",
            retryable=False,
            status_code=500,
        )
        self.document_no = document_no


class WorkflowConfigurationError(WarehouseError):
    """Raised when ``WAREHOUSE_WORKFLOW`` settings are missing or invalid."""

    def __init__(self, message: str):
        super().__init__(message, error_code="configuration_error", retryable=False, status_code=500)
