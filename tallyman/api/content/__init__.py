"""Content table resources."""
