"""Shared base for immutable data-at-rest models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FrozenModel(BaseModel):
    """Immutable model serialized with camelCase keys.

    Instances are never modified in place: derive new values with
    ``model_copy(update=...)``.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
