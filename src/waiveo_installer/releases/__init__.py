"""Release resolution and artifact installation."""
