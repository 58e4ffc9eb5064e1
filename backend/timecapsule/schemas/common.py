from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from timecapsule.core.clock import isoformat_z


# naive UTC in storage, "...Z" on the wire
UtcDatetime = Annotated[datetime, PlainSerializer(isoformat_z, return_type=str)]


class CamelModel(BaseModel):
    """Response view: camelCase JSON, built straight from ORM rows."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageOut(BaseModel):
    message: str
