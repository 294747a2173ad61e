"""Lines of Thought server: thought graph creation, retrieval and ranking."""

__version__ = "1.0.0"
