"""Domain layer - request lifecycle, eligibility and track matching."""
