"""Eligibility filter (spaced-repetition cooldowns)."""
