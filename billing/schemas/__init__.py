from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts both snake_case and camelCase keys in request bodies."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)
