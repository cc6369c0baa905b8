"""Art style catalog and per-style lookup tables.

Architectural role:
    Defines the closed set of art styles offered for generation. Behavior that
    varies by style (prompt modifier, icon, accent color, short description) is
    kept in plain lookup tables keyed by `ArtStyle`, so adding a style is a data
    edit in this module only.

Catalog order:
    Enum declaration order is significant. Style extraction in
    `voicesketch.nlp.intent_parser` scans `ArtStyle` in this order and the first
    match wins.

Determinism:
    Pure data. No I/O at import time.
"""

from __future__ import annotations

from enum import Enum


class ArtStyle(Enum):
    """Named art style; the value is the user-facing label."""

    PHOTOREALISTIC = "Photorealistic"
    CARTOON = "Cartoon"
    ANIME = "Anime"
    WATERCOLOR = "Watercolor"
    OIL_PAINTING = "Oil Painting"
    SKETCH = "Pencil Sketch"
    DIGITAL_ART = "Digital Art"
    ABSTRACT = "Abstract"
    PIXEL_ART = "Pixel Art"
    IMPRESSIONIST = "Impressionist"
    CYBERPUNK = "Cyberpunk"
    FANTASY = "Fantasy Art"

    @property
    def label(self) -> str:
        return self.value

    @property
    def prompt_suffix(self) -> str:
        return STYLE_PROMPT_SUFFIXES[self]

    @property
    def icon(self) -> str:
        return STYLE_ICONS[self]

    @property
    def accent_color(self) -> str:
        return STYLE_ACCENT_COLORS[self]

    @property
    def description(self) -> str:
        return STYLE_DESCRIPTIONS[self]

    @classmethod
    def from_label(cls, value: str) -> "ArtStyle":
        """Resolve a style from its label or member name, case-insensitively.

        Raises:
            ValueError: When no style matches.
        """
        wanted = (value or "").strip().lower()
        for style in cls:
            if wanted in (style.value.lower(), style.name.lower()):
                return style
        raise ValueError(f"Unknown art style: {value!r}")


STYLE_PROMPT_SUFFIXES: dict[ArtStyle, str] = {
    ArtStyle.PHOTOREALISTIC: "photorealistic, highly detailed, 8k resolution, professional photography",
    ArtStyle.CARTOON: "cartoon style, vibrant colors, clean lines, animated",
    ArtStyle.ANIME: "anime style, manga art, Japanese animation aesthetic",
    ArtStyle.WATERCOLOR: "watercolor painting, soft edges, artistic, painted",
    ArtStyle.OIL_PAINTING: "oil painting, textured brushstrokes, classical art style",
    ArtStyle.SKETCH: "pencil sketch, hand-drawn, artistic line work, monochrome",
    ArtStyle.DIGITAL_ART: "digital art, concept art, modern illustration",
    ArtStyle.ABSTRACT: "abstract art, non-representational, artistic expression",
    ArtStyle.PIXEL_ART: "pixel art, retro gaming aesthetic, 16-bit style",
    ArtStyle.IMPRESSIONIST: "impressionist painting, loose brushwork, light and color focus",
    ArtStyle.CYBERPUNK: "cyberpunk style, neon lights, futuristic, sci-fi aesthetic",
    ArtStyle.FANTASY: "fantasy art, magical, epic, dramatic lighting",
}

STYLE_ICONS: dict[ArtStyle, str] = {
    ArtStyle.PHOTOREALISTIC: "camera.fill",
    ArtStyle.CARTOON: "face.smiling",
    ArtStyle.ANIME: "star.circle.fill",
    ArtStyle.WATERCOLOR: "paintbrush.fill",
    ArtStyle.OIL_PAINTING: "paintpalette.fill",
    ArtStyle.SKETCH: "pencil",
    ArtStyle.DIGITAL_ART: "ipad.and.arrow.forward",
    ArtStyle.ABSTRACT: "waveform",
    ArtStyle.PIXEL_ART: "square.grid.3x3.fill",
    ArtStyle.IMPRESSIONIST: "sparkles",
    ArtStyle.CYBERPUNK: "bolt.fill",
    ArtStyle.FANTASY: "sparkle.magnifyingglass",
}

STYLE_ACCENT_COLORS: dict[ArtStyle, str] = {
    ArtStyle.PHOTOREALISTIC: "blue",
    ArtStyle.CARTOON: "orange",
    ArtStyle.ANIME: "pink",
    ArtStyle.WATERCOLOR: "cyan",
    ArtStyle.OIL_PAINTING: "brown",
    ArtStyle.SKETCH: "gray",
    ArtStyle.DIGITAL_ART: "purple",
    ArtStyle.ABSTRACT: "indigo",
    ArtStyle.PIXEL_ART: "green",
    ArtStyle.IMPRESSIONIST: "yellow",
    ArtStyle.CYBERPUNK: "pink",
    ArtStyle.FANTASY: "purple",
}

STYLE_DESCRIPTIONS: dict[ArtStyle, str] = {
    ArtStyle.PHOTOREALISTIC: "Ultra-realistic images",
    ArtStyle.CARTOON: "Playful and vibrant",
    ArtStyle.ANIME: "Japanese animation style",
    ArtStyle.WATERCOLOR: "Soft, painted look",
    ArtStyle.OIL_PAINTING: "Classical art style",
    ArtStyle.SKETCH: "Hand-drawn appearance",
    ArtStyle.DIGITAL_ART: "Modern illustration",
    ArtStyle.ABSTRACT: "Non-representational art",
    ArtStyle.PIXEL_ART: "Retro gaming aesthetic",
    ArtStyle.IMPRESSIONIST: "Light and color focus",
    ArtStyle.CYBERPUNK: "Futuristic neon aesthetic",
    ArtStyle.FANTASY: "Magical and epic",
}
