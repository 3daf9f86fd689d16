"""Core configuration, logging and service wiring."""
