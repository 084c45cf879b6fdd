"""Azure service adapters (resource graph session)."""
