"""Address derivation, account resolution and instruction assembly."""
