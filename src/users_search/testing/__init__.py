"""Testing – in-memory doubles for the listing ports."""
