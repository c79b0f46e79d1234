"""Screenshot ingestion: key generation and the classification pipeline."""
