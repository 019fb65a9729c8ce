"""Internal helpers shared across modelgate. Not part of the public API."""
