"""Shared pydantic base for the JSON wire format.

Learn: Python attributes stay snake_case; the API and the state embedded
in the dashboard page use camelCase (avatarUrl, createdAt, userId).
populate_by_name lets code construct models with either spelling.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
