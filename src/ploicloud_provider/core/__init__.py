"""Core subsystems: API client, error hierarchy and state reconciliation."""
