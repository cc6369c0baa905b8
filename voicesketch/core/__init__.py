"""Core orchestration package.

Architectural role:
    Holds the shared value types and the generation engine that sits between the
    API/CLI adapters and the lower-level subsystems (intent parsing, image
    providers, storage).

Composition:
    - `styles`: art style catalog and lookup tables.
    - `models`: request, metadata and artwork contracts.
    - `commands`: voice command and intent variants.
    - `errors`: caller-facing error taxonomy and provider failures.
    - `engine`: generation, edit and command-dispatch pipeline.
"""
