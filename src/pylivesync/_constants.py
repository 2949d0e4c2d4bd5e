"""Internal constants shared across the library."""

DEFAULT_ENDPOINT = "ws://localhost:4000/graphql"
GRAPHQL_WS_SUBPROTOCOL = "graphql-transport-ws"
USER_AGENT = "pylivesync"

# WebSocket close codes.
NORMAL_CLOSE_CODE = 1000

VALID_ENDPOINT_SCHEMES: frozenset[str] = frozenset({"ws", "wss"})
