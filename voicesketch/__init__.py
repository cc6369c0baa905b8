"""VoiceSketch generation core.

Turns spoken transcripts into structured commands and runs the image
generation pipeline (request building, provider call with retry, caching,
persistence) behind thin CLI and HTTP adapters.
"""

__version__ = "0.1.0"
