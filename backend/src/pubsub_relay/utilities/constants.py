# ------------ Topics ------------
MESSAGE_ADDED = "message-added"
SYSTEM_STATUS_CHANGED = "status-changed"
SETTINGS_UPDATED = "settings-updated"

# ------------ Protocol ------------
GRAPHQL_TRANSPORT_WS = "graphql-transport-ws"
CLOSE_UNAUTHORIZED = 4401    # operation sent before connection_init
CLOSE_NORMAL = 1000
# --------------------------------
