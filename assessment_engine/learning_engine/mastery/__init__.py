"""Mastery tracker."""
