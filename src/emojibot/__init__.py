"""emojibot: hello-world service with an injectable health-check failure."""

__version__ = "0.1.0"
