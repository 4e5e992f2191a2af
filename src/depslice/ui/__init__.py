"""Terminal output for DepSlice."""
