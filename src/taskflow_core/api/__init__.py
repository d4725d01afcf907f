"""HTTP API for TaskFlow Core."""
