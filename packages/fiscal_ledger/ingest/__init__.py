"""Declaration file ingestion: adapters and batch helpers."""
