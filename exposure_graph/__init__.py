"""Asset relationship and pipeline dependency graphs for exposure management."""
