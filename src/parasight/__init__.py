"""Link ingestion and PARA classification."""
