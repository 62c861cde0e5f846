"""writeguard: declarative write validation in front of SQLAlchemy Core tables."""

__version__ = "0.1.0"
