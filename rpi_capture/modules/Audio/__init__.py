"""USB audio capture module: discovery, negotiation, capture and commands."""
