"""Register shifts and cash drawer reconciliation."""
