"""NLP utilities for voice command classification.

Module scope:
- Rule-based intent parsing and text extraction helpers (`intent_parser`).

Determinism profile:
- Fully deterministic keyword rules; no model inference.
"""
