"""Participant status resources."""
