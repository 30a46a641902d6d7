"""repo2prompt: render a repository as a single plain-text document for an LLM."""

__version__ = "1.0.5"
