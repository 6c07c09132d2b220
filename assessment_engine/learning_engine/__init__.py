"""Learning engine: mastery, eligibility, selection, scoring and readiness algorithms."""
