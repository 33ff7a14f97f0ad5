"""Domain errors raised by the service layer.

Route handlers never build error responses themselves: services raise one of
these and the handlers registered in ``main`` turn it into ``{"error": ...}``
with the matching status code.
"""


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """A required field is missing or a value is not acceptable."""

    status_code = 400


class AuthenticationError(ServiceError):
    status_code = 401


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    """A referenced entity does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(ServiceError):
    """A workflow action is not allowed from the entity's current status."""

    status_code = 409

    def __init__(self, entity: str, current, target):
        current_value = getattr(current, "value", current)
        target_value = getattr(target, "value", target)
        super().__init__(
            f"Cannot move {entity} from {current_value} to {target_value}"
        )
        self.entity = entity
        self.current = current
        self.target = target
