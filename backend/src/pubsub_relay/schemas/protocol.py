from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ClientMessage(BaseModel):
    ''' A client -> server frame (connection_init|ping|pong|subscribe|complete).'''
    type: str
    id: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None


class SubscribePayload(BaseModel):
    '''Payload of a subscribe frame; the operation is selected by its root field.'''
    operation: str = Field(..., min_length=1)
    variables: Dict[str, Any] = Field(default_factory=dict)
