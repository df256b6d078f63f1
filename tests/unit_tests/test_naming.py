"""Tests for project slug generation."""

import re

from vibe_server.utils.naming import generate_slug


def test_slug_is_two_word_kebab_case():
    for _ in range(50):
        slug = generate_slug()
        assert re.fullmatch(r"[a-z0-9]+(?:-[a-z0-9]+)+", slug)
        assert len(slug.split("-")) >= 2


def test_slugs_rarely_collide():
    slugs = {generate_slug() for _ in range(50)}

    assert len(slugs) > 40
