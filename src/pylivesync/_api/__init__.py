"""GraphQL-over-WebSocket protocol frames and operation builders."""
