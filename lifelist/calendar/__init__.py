"""Event model, recurrence expansion and the data file for lifelist."""
