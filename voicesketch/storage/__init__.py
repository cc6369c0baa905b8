"""Storage collaborators used by the generation engine.

Architectural role:
    - `image_cache`: generated image bytes and thumbnails.
    - `artwork_store`: durable artwork records (JSON document).
    - `key_store`: provider credentials.

The engine depends only on the narrow interfaces these modules expose, so any
of them can be swapped for another backend.
"""
