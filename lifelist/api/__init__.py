"""HTTP surface for the lifelist server."""
