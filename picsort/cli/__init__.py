"""Command-line interface for picsort."""
