"""Schema baselines: strict request DTOs and camelCase response DTOs."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)


class CamelResponseModel(BaseModel):
    """Response DTO base: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
