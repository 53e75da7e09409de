import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from utils.constants import DEFAULT_EMERGENCY_BUFFER_PERCENT, MAX_EMERGENCY_BUFFER_PERCENT
from utils.errors import InvalidInputError


@dataclass(frozen=True)
class BudgetSettings:
    """Typed form of the stored budget-settings blob.

    Built once at the boundary and passed read-only into the evaluators.
    emergency_buffer_percent is display-only and never changes status
    thresholds.
    """

    emergency_buffer_percent: float = DEFAULT_EMERGENCY_BUFFER_PERCENT
    category_limits: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        buffer = self.emergency_buffer_percent
        if not isinstance(buffer, (int, float)) or isinstance(buffer, bool):
            raise InvalidInputError("Emergency buffer must be a number.", field="emergency_buffer_percent")
        if not 0 <= buffer <= MAX_EMERGENCY_BUFFER_PERCENT:
            raise InvalidInputError(
                f"Emergency buffer must be between 0 and {MAX_EMERGENCY_BUFFER_PERCENT:g}.",
                field="emergency_buffer_percent",
            )
        if not isinstance(self.category_limits, Mapping):
            raise InvalidInputError("Category limits must be a mapping of category to amount.", field="category_limits")
        limits = {}
        for category, limit in self.category_limits.items():
            if not isinstance(category, str) or not category.strip():
                raise InvalidInputError("Category name cannot be empty.", field="category_limits")
            if not isinstance(limit, (int, float)) or isinstance(limit, bool) or limit < 0:
                raise InvalidInputError(
                    f"Limit for '{category}' must be a non-negative number.",
                    field="category_limits",
                )
            limits[category] = float(limit)
        object.__setattr__(self, "emergency_buffer_percent", float(buffer))
        object.__setattr__(self, "category_limits", MappingProxyType(limits))

    @classmethod
    def from_dict(cls, data: dict) -> "BudgetSettings":
        return cls(
            emergency_buffer_percent=data.get("emergencyBuffer", DEFAULT_EMERGENCY_BUFFER_PERCENT),
            category_limits=data.get("categoryLimits") or {},
        )

    @classmethod
    def from_json(cls, raw: str | None) -> "BudgetSettings":
        """Parse the stored JSON blob; an empty value gives the defaults."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise InvalidInputError(f"Budget settings are not valid JSON: {exc}", field="budget_settings")
        if not isinstance(data, dict):
            raise InvalidInputError("Budget settings must be a JSON object.", field="budget_settings")
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return {
            "emergencyBuffer": self.emergency_buffer_percent,
            "categoryLimits": dict(self.category_limits),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    def with_limit(self, category: str, limit: float) -> "BudgetSettings":
        limits = dict(self.category_limits)
        limits[category] = limit
        return BudgetSettings(self.emergency_buffer_percent, limits)
