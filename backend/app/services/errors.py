class TrackerEntityNotFound(LookupError):
    def __init__(self, entity: str, entity_id: str | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ReservedSubtaskName(ValueError):
    """ACTUAL is computed and a task has at most one PLANNED lane."""


class InvalidMilestoneOwner(ValueError):
    """A milestone belongs to exactly one subtask or sub-subtask."""
