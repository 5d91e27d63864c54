"""HTTP service for the PII redaction pipeline."""
