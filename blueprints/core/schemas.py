# blueprints/core/schemas.py
from __future__ import annotations
from datetime import time
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# "09:00" on the wire; pydantic already parses both HH:MM and HH:MM:SS
HHMM = Annotated[time, PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str, when_used="json")]


class ApiModel(BaseModel):
    """camelCase on the wire (the archive field names), snake_case accepted on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
