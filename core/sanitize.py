"""Markup sanitization for user-supplied text."""

import nh3


def sanitize_text(text: str) -> str:
    """Strip script content and unsafe markup from ``text``.

    Uses nh3's default allow-list (safe inline/user-generated-content tags);
    ``<script>``/``<style>`` elements are removed together with their content.
    """
    return nh3.clean(text)
