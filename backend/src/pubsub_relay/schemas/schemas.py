from typing import List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EventPayload(BaseModel):
    ''' Base for immutable event records; serialized with camelCase keys.'''
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Message(EventPayload):
    id: str
    text: str
    created_at: str
    author: str
    channel: str
    important: bool
    tags: List[str]


class SystemStatus(EventPayload):
    online: bool
    load: float
    updated_at: str


class Settings(EventPayload):
    theme: str
    lang: str
    updated_at: str


class SendMessageInput(BaseModel):
    '''Arguments of the sendMessage mutation.'''
    text: str = Field(..., min_length=1)
    author: str = "user"
    channel: str = "general"
    important: bool = False
    tags: List[str] = Field(default_factory=list)
