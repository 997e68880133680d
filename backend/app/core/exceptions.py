class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class DataIntegrityError(AppError):
    """Raised when a stored slot or assignment holds values the engine cannot interpret.

    Read paths catch this, skip the entity and keep going.
    """
    def __init__(self, message: str, entity_type: str, entity_id: str | None = None):
        super().__init__(
            message,
            status_code=500,
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id

class ConflictError(AppError):
    """Raised when a proposed weekly slot overlaps an existing booking."""
    def __init__(self, message: str, conflicting_slot: dict):
        super().__init__(message, status_code=409, details={"conflicting_slot": conflicting_slot})
        self.conflicting_slot = conflicting_slot

class SlotValidationError(AppError):
    """Raised when a slot write carries an invalid day or time range."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
