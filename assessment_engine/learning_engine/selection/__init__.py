"""Question selector: weighted objective sampling over eligibility-filtered pools."""
