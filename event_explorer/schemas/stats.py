from datetime import datetime

from pydantic import BaseModel, Field


class ViewStats(BaseModel):
    app: str
    uri: str
    hits: int = Field(ge=0)


class EndpointHit(BaseModel):
    app: str
    uri: str
    ip: str
    timestamp: datetime
