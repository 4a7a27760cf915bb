"""
Payload Base Models
"""

from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilterOptions(CamelModel):
    """Selected value and the options offered by a UI dropdown"""
    selected: str
    options: List[str]
