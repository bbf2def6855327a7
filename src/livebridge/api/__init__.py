"""LiveBridge HTTP and WebSocket API."""
