"""CLI commands for chunkup."""
