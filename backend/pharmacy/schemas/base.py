from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request body with camelCase JSON keys and snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        """Provided fields only, keyed the way the services expect (camelCase)."""
        return self.model_dump(by_alias=True, exclude_unset=True)
