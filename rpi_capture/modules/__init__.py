"""Appliance modules."""
