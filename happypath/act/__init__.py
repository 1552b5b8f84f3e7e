"""Gate evaluation and the platform review request."""
