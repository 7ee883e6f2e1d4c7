"""AI ecosystem signals, audit logging and safety gates for applying recommendations."""

__version__ = "0.1.0"