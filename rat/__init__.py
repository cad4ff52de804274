"""Restaurant inspection lookup: resolve a named restaurant against the NYC inspection feed."""
