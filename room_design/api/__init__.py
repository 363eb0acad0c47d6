"""HTTP API for the room design service."""
