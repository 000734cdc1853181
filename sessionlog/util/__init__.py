"""Small helpers shared across sessionlog modules."""
