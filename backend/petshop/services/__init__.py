"""Scheduling, pricing, package and lifecycle services."""
