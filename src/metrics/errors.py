"""Error taxonomy for the metrics layer.

Raised errors:
    NotFoundError  — unknown user id
    NetworkError   — transport failure talking to the remote origin
    SchemaError    — raw payload fails basic shape checks
    TransformError — projection input is not what the transformer expects

Recovered problems (a value outside its domain replaced by a default) are
not raised.  They are recorded as ``ValidationAnomaly`` entries instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class MetricsError(Exception):
    """Base class for every failure surfaced by the metrics layer."""

    #: Short machine-readable category, also used by the HTTP layer.
    kind: str = "metrics"


class NotFoundError(MetricsError):
    """The requested user does not exist at the selected origin."""

    kind = "not_found"

    def __init__(self, user_id: object, resource: str = "user") -> None:
        self.user_id = user_id
        self.resource = resource
        super().__init__(f"No {resource} data for user {user_id!r}")


class NetworkError(MetricsError):
    """The remote origin could not be reached or answered with an error."""

    kind = "network"


class SchemaError(MetricsError):
    """A raw payload is structurally unusable."""

    kind = "schema"


class TransformError(MetricsError, ValueError):
    """A transformer was handed data it must not project (e.g. already padded)."""

    kind = "transform"


@dataclass(frozen=True)
class ValidationAnomaly:
    """A recoverable out-of-domain value that was replaced by a default.

    Attributes:
        entity:      Canonical entity name ('sessions', 'key_nutrition', ...).
        field:       Field that carried the bad value.
        raw_value:   Value as received from the source.
        replacement: Value written to the canonical record instead.
        reason:      Human-readable explanation.
    """

    entity: str
    field: str
    raw_value: Any
    replacement: Any
    reason: str
