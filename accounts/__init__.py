"""User account service: registration, activation, profiles and session tokens."""

__version__ = "0.1.0"
