"""Readable project names."""

from coolname import generate_slug as _random_slug


def generate_slug() -> str:
    """Two-word kebab-case name, e.g. 'swift-otter'."""
    return _random_slug(2)
