"""Readiness predictor."""
