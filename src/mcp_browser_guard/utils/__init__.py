"""Small helpers shared by the tool implementations."""
