"""Status overlay."""
