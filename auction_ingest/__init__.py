"""Auction snapshot CSV ingestion for the S3 → SQLite / SQS pipeline."""

__version__ = "0.1.0"
