from datetime import datetime
from typing import List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WorkspaceIn(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class WorkspaceOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    owner: int = Field(validation_alias=AliasChoices("owner", "owner_id"))
    members: List[int] = Field(validation_alias=AliasChoices("member_ids", "members"))
    created_at: datetime
