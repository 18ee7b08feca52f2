"""PyQt6 front-end for the localizer."""
