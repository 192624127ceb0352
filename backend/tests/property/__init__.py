"""Hypothesis property tests and shared strategies."""
