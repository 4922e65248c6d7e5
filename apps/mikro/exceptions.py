class MikroQueryError(Exception):
    """Raised when a statement against the Mikro database fails or times out."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "mikro_unavailable",
        retryable: bool = True,
        status_code: int | None = 503,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.retryable = retryable
        self.status_code = status_code
