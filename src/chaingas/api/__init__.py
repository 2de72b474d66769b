"""Published-state API -- read-only JSON and WebSocket views of the ingestion store."""
