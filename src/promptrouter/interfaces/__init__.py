"""External interfaces."""
