from .constants import (
    MESSAGE_ADDED,
    SYSTEM_STATUS_CHANGED,
    SETTINGS_UPDATED,
    GRAPHQL_TRANSPORT_WS,
    CLOSE_UNAUTHORIZED,
    CLOSE_NORMAL,
)
from .utility_functions import (
    now_ts,
    make_connection_ack,
    make_pong,
    make_next,
    make_complete,
    make_error,
)
