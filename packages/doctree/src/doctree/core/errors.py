"""Error taxonomy for tree operations.

Every error carries a stable code that is surfaced to API clients.
"""

ERR_INVALID_OFFSET = "ERR_INVALID_OFFSET"
ERR_INVALID_LIMIT = "ERR_INVALID_LIMIT"
ERR_INVALID_DEPTH = "ERR_INVALID_DEPTH"
ERR_INVALID_ORDER_BY = "ERR_INVALID_ORDER_BY"
ERR_INVALID_TYPE = "ERR_INVALID_TYPE"
ERR_INVALID_PATH_NAME = "ERR_INVALID_PATH_NAME"
ERR_INVALID_TITLE = "ERR_INVALID_TITLE"
ERR_INVALID_PARENT = "ERR_INVALID_PARENT"
ERR_FOLDER_NOT_FOUND = "ERR_FOLDER_NOT_FOUND"
ERR_FOLDER_ALREADY_EXISTS = "ERR_FOLDER_ALREADY_EXISTS"
ERR_STORAGE_FAILURE = "ERR_STORAGE_FAILURE"


class TreeError(Exception):
    """Base class for tree store errors."""

    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class ValidationError(TreeError):
    """Rejected input. Raised before any write."""


class NotFoundError(TreeError):
    """Referenced node does not exist."""

    def __init__(self, code: str = ERR_FOLDER_NOT_FOUND, message: str | None = None) -> None:
        super().__init__(code, message)


class ConflictError(TreeError):
    """Sibling name collision."""

    def __init__(self, code: str = ERR_FOLDER_ALREADY_EXISTS, message: str | None = None) -> None:
        super().__init__(code, message)


class StorageError(TreeError):
    """Transaction or connectivity failure. The unit of work was rolled back."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(ERR_STORAGE_FAILURE, message)
