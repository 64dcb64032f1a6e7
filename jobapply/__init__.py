"""Answer resolution and conversation pipeline for job application forms."""

__version__ = "0.3.0"
