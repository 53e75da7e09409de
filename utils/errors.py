class InvalidInputError(ValueError):
    """Raised at the boundary for malformed dates, amounts, intervals or settings."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InconsistentStateError(Exception):
    """Stored records that contradict each other.

    Orphaned pending rows are reported with this type rather than raised, so a
    whole batch is never failed by one bad row.
    """

    def __init__(self, message: str, record_id: int | None = None):
        super().__init__(message)
        self.record_id = record_id
