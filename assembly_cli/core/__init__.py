"""Core workflows: job polling, transcript storage, and question batches."""
