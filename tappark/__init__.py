"""TapPark grace period expiration engine."""
