"""Image generation adapter package.

Scope:
    Provider configuration, request building, provider clients, the retry
    wrapper used around a single generation call, and the client factory.

Non-goals:
    - No caching or persistence of generated images (see `voicesketch.storage`).
"""
