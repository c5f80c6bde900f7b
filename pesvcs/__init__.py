"""A small content-addressed version control system with a staging area and a ``pes`` command."""

__version__ = "0.1.0"
__all__ = ["cli", "commit", "index", "objects", "tree"]