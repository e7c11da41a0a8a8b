"""HTTP API for the Satvik catalog service."""
