"""Configuration, logging and path conventions."""
