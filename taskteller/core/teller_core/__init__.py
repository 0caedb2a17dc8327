"""Core extraction, resolution and persistence for TaskTeller."""
