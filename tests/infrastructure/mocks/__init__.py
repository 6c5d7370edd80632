"""Hardware-free stand-ins for the appliance's collaborators."""
