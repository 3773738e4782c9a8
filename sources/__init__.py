"""News sources for the consolidator."""
