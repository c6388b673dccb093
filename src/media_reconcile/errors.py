"""Exception types raised inside the engine.

Handlers in ``reconcile_service`` turn these into result objects; only
``OperationCancelled`` is allowed to propagate to callers.
"""


class ReconcileError(Exception):
    """Base class for all engine errors."""


class TaskValidationError(ReconcileError):
    """Input for a task operation is malformed."""


class TaskNotFoundError(ReconcileError):
    """No pending task is registered under the given id."""

    def __init__(self, task_id: str):
        super().__init__(f"Task with id {task_id} not found")
        self.task_id = task_id


class EmptyTaskError(ReconcileError):
    """A task without items was asked to finalize."""


class DescriptorParseError(ReconcileError):
    """A descriptor file could not be read or parsed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to parse descriptor {path}: {reason}")
        self.path = path


class OperationCancelled(ReconcileError):
    """The caller signalled cancellation of an in-flight operation."""
