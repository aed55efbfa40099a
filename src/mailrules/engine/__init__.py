"""Rule execution engine."""
