"""DocDelta test suite."""
