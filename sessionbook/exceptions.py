"""Domain errors raised by the scheduling and payment services"""

from typing import Any


class SessionbookError(Exception):
    """Base class for errors raised by the core services"""

    pass


class NotFoundError(SessionbookError):
    """Raised when an id does not resolve to a stored entity"""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class InvalidArgumentError(SessionbookError, ValueError):
    """Raised for malformed input such as a non-positive allocation amount"""

    pass
