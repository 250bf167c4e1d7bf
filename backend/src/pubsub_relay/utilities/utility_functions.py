from datetime import datetime, timezone
from typing import Any, Dict, Optional


def now_ts() -> str:
    # UTC, millisecond precision, "Z" suffix
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

# Server -> client messages are built as dicts
def make_connection_ack():
    return {"type": "connection_ack"}

def make_pong():
    return {"type": "pong"}

def make_next(op_id: str, field: str, data: Any):
    return {"type": "next", "id": op_id, "payload": {"data": {field: data}}}

def make_complete(op_id: str):
    return {"type": "complete", "id": op_id}

def make_error(op_id: Optional[str], code: str, message: str) -> Dict[str, Any]:
    return {"type": "error", "id": op_id, "payload": [{"message": message, "code": code}]}
