"""Configuration, constants, errors and money helpers."""
