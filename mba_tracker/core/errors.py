class MBATrackerError(Exception):
    """Base class for errors raised by the service layer."""


class NotFoundError(MBATrackerError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidInputError(MBATrackerError):
    pass


class ConflictError(MBATrackerError):
    pass
