"""Exceptions raised by the Brand Visibility Engine.

Only fatal conditions are exceptions. Per-citation, per-sentence and
per-response degradations are soft results and never raise.
"""


class VisibilityEngineError(Exception):
    """Base class for engine errors."""


class EmptyBrandListError(VisibilityEngineError):
    """Raised when a run is started without any brand candidates."""

    def __init__(self, message: str = "Brand candidate list is empty or missing"):
        super().__init__(message)


class AggregationStoreError(VisibilityEngineError):
    """Raised when the aggregation store cannot be read or written.

    The scope run is aborted and nothing is written; the caller retries the
    whole scope later.
    """

    def __init__(self, message: str, scope: str = ""):
        super().__init__(message)
        self.scope = scope
