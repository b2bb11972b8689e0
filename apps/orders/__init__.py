"""Orders: checkout settlement, order lifecycle and pricing."""
