"""Infrastructure layer: hashing primitives, persistence and notification providers."""
