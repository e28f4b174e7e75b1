"""Application layer - commands, queries and orchestration services."""
