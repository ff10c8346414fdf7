from pydantic import BaseModel, ConfigDict, Field, field_validator

class EventIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = Field(..., description="Event type tag")
    data: str = Field(..., description="Opaque event payload")
    timestamp: str | None = Field(None, description="Point in time the event refers to")

    @field_validator("type", "data")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

class Event(BaseModel):
    id: str
    type: str
    data: str
    timestamp: str

class EventResponse(BaseModel):
    message: str
    event: Event
