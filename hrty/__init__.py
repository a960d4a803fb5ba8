"""Core alert rules for heart-failure self-monitoring.

This package contains the rule evaluators, domain models and alert ledger,
isolated from storage and UI so they are easy to test and reason about.
"""
