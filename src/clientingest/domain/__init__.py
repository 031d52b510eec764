"""Domain layer: client drafts, ingestion components and ports."""
