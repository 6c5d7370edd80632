"""Process entry point."""
