"""Exception hierarchy for nutristat."""


class NutristatError(Exception):
    """Base class for all nutristat errors."""


class NotFoundError(NutristatError, LookupError):
    """Raised when a requested record does not exist."""


class ChildNotFoundError(NotFoundError):
    """No live measurements exist for the requested child."""

    def __init__(self, child_id: str = "") -> None:
        self.child_id = child_id
        super().__init__(
            f"Children not found: {child_id}" if child_id else "Children not found"
        )


class MeasurementNotFoundError(NotFoundError):
    """No live measurement exists with the requested id."""

    def __init__(self, measurement_id: str) -> None:
        self.measurement_id = measurement_id
        super().__init__(f"Nutrition history not found: {measurement_id}")


class ReferenceDataError(NutristatError, ValueError):
    """Reference table content is missing columns or has invalid values."""
