"""Missing Data Deck - rendering services."""
