"""studyhub: spaced-repetition review engine for topic flashcards."""

__version__ = "1.0.0"
