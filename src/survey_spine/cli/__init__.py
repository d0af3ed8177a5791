"""Command-line interface (``survey-spine``)."""
