"""
Nourish - Error types.

Tool-level failures (ToolError and subclasses) are expected outcomes: the
dispatcher turns them into `{"success": False, "error": ...}` payloads that are
fed back to the model. Only context validation and authentication failures
abort a whole request.
"""


class NourishError(Exception):
    """Base class for all Nourish errors."""


class ContextValidationError(NourishError):
    """The client-supplied context snapshot was rejected."""

    def __init__(self, issues: list[str]):
        self.issues = issues
        super().__init__("Invalid context: " + "; ".join(issues))


class ToolContextError(NourishError):
    """A tool was invoked without a usable execution context."""


class OwnershipError(NourishError):
    """A store call on user-owned data was made without a user scope."""


class ToolError(NourishError):
    """Expected tool failure; the message is shown to the model."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ToolError):
    """An id or name did not resolve to one of the caller's records."""


class MealAnalysisError(NourishError):
    """A meal description could not be turned into a meal (e.g. it isn't food)."""
