class CRMError(Exception):
    """Base exception for CRM service-layer failures."""


class NotFoundError(CRMError):
    """Raised when a mutation or lookup target does not exist."""

    def __init__(self, entity: str, entity_id: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")

    @property
    def detail(self) -> str:
        return f"{self.entity} not found"
