"""Command-line interface for stratcorr."""
