"""A named, versioned form definition as stored under ``forms/``."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .field import FieldDescriptor


class FormDefinition(BaseModel):
    """Top-level form: identity plus the ordered field tree."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    version: Optional[str] = None
    description: Optional[str] = None
    items: List[FieldDescriptor] = Field(default_factory=list)

    def iter_leaves(self):
        for item in self.items:
            yield from item.iter_leaves()
