"""Profile card generator: GitHub stats rendered into an SVG template."""

__version__ = "1.0.0"
