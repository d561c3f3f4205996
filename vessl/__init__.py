"""Command-line management of Docker containers and images via the Docker Engine API."""

__version__ = "1.0.0"
__all__ = ["__version__"]