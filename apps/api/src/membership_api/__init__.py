"""Membership application API."""
