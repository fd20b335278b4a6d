"""HTTP server answering every request with a fixed greeting."""
