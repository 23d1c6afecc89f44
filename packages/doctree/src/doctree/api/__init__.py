"""HTTP API for the document tree."""
