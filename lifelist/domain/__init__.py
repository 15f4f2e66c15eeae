"""Event engine and presentation helpers for lifelist."""
