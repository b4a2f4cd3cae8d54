"""DB repositories: sync functions that open their own session and return dicts or detached rows."""
