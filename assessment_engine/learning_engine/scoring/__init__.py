"""Test scorer: grading and objective-weighted scores."""
