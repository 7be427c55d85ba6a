"""
Base schemas for all models.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class SnapshotSchema(BaseSchema):
    """
    Base for immutable snapshots.

    Used for results that are stored inside finalized orders and must
    never change after being produced.
    """
    model_config = ConfigDict(frozen=True)
