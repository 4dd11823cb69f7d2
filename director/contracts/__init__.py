"""Named data shapes and hashing helpers shared across the core."""
