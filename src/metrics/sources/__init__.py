"""Raw payload origins for the SportSee metrics layer.

Each source implements the MetricsSource ABC and returns the raw,
pre-normalization JSON of the four SportSee endpoints.

Available sources:
    MockSource   — bundled static fixtures (origin "mock")
    RemoteSource — SportSee HTTP backend via httpx (origin "remote")
"""

from src.metrics.sources.mock import MockSource
from src.metrics.sources.remote import RemoteSource

__all__ = [
    "MockSource",
    "RemoteSource",
]

# Registry: origin slug → source class
SOURCE_REGISTRY: dict[str, type] = {
    "mock": MockSource,
    "remote": RemoteSource,
}


def get_source_class(origin: str) -> type:
    """Return the source class for an origin slug.

    Raises:
        KeyError: If the origin is not registered.
    """
    if origin not in SOURCE_REGISTRY:
        raise KeyError(
            f"No source registered for origin '{origin}'. "
            f"Available: {list(SOURCE_REGISTRY)}"
        )
    return SOURCE_REGISTRY[origin]
