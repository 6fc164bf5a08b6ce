"""
Styling detector: CSS and component style changes.
"""

from typing import Dict, Sequence

from ..claims.models import ClaimDomain
from .base import Detector, Signature


class StylingDetector(Detector):
    """Verifies claims about responsive design, colors, layout and animation."""

    name = "styling"
    domain = ClaimDomain.STYLING

    subcategories: Dict[str, Sequence[str]] = {
        "responsive": ("responsive", "mobile", "media quer", "breakpoint", "viewport"),
        "dark_mode": ("dark mode", "light mode", "theme", "color scheme"),
        "color": ("color", "colour", "palette", "background"),
        "dimension": ("width", "height", "size", "spacing", "padding", "margin"),
        "layout": ("layout", "flex", "grid", "align", "center"),
        "animation": ("animat", "transition", "hover", "motion", "keyframe"),
    }

    signatures = (
        # Responsive
        Signature("media_query", r"@media\b[^{]*\(", "responsive", 0.9,
                  "Media query breakpoints"),
        Signature("container_query", r"@container\b", "responsive", 0.9,
                  "Container queries"),
        Signature("viewport_units", r"\d+(?:\.\d+)?(?:dvw|dvh|vw|vh|vmin|vmax)\b", "responsive", 0.7,
                  "Viewport-relative units"),
        Signature("fluid_typography", r"clamp\s*\(", "responsive", 0.7,
                  "Fluid sizing with clamp()"),
        # Dark mode
        Signature("dark_mode_media", r"prefers-color-scheme\s*:\s*dark", "dark_mode", 0.9,
                  "prefers-color-scheme media query"),
        Signature("custom_properties", r"--[\w-]+\s*:|var\s*\(\s*--[\w-]+", "dark_mode", 0.7,
                  "CSS custom properties"),
        Signature("color_scheme", r"color-scheme\s*:", "dark_mode", 0.8,
                  "color-scheme property"),
        Signature("theme_class", r"[.\[](?:dark|theme)[\w-]*", "dark_mode", 0.7,
                  "Theme selectors"),
        # Color
        Signature("color_values", r"#[0-9a-f]{3,8}\b|rgba?\s*\(|hsla?\s*\(", "color", 0.8,
                  "Color values"),
        Signature("color_properties", r"(?:^|[\s;{])(?:color|background(?:-color)?|border-color|fill)\s*:", "color", 0.8,
                  "Color properties"),
        # Dimension
        Signature("dimension_properties", r"(?:^|[\s;{])(?:(?:max-|min-)?(?:width|height)|padding|margin|gap|font-size)\s*:", "dimension", 0.85,
                  "Size and spacing properties"),
        # Layout
        Signature("flex_container", r"display\s*:\s*(?:inline-)?flex", "layout", 0.85,
                  "Flexbox containers"),
        Signature("grid_container", r"display\s*:\s*(?:inline-)?grid", "layout", 0.85,
                  "Grid containers"),
        Signature("alignment", r"(?:justify-content|align-items|align-self|place-items|flex-direction|grid-template-\w+)\s*:", "layout", 0.8,
                  "Alignment and track properties"),
        # Animation
        Signature("keyframes", r"@keyframes\s+[\w-]+", "animation", 0.9,
                  "Keyframe animations"),
        Signature("animation_property", r"animation(?:-[a-z-]+)?\s*:", "animation", 0.85,
                  "Animation properties"),
        Signature("transition_property", r"transition(?:-[a-z-]+)?\s*:", "animation", 0.8,
                  "Transitions"),
        Signature("transform_property", r"transform\s*:\s*(?:translate|rotate|scale|skew|matrix)", "animation", 0.7,
                  "Transforms"),
        # Any style declaration, used when the claim names no sub-category
        Signature("style_declarations", r"[\w-]+\s*:\s*[^;{}]+;", "general", 0.7,
                  "Style declarations"),
    )
