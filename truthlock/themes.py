"""Theme Resolver: BASE design system + named presets -> resolved ThemeConfig.

Every nested record of the design system is a frozen dataclass. Presets are
partial overrides (nested dicts); each record type has its own merge function
that applies an override key-by-key and rejects keys the record does not have,
so a preset that supplies only ``colors.primary`` keeps every other BASE value
and a misspelled key fails loudly instead of being dropped.
"""

import dataclasses
import logging
import re
from dataclasses import dataclass, field

from truthlock.errors import ThemeError

logger = logging.getLogger(__name__)

DEFAULT_PRESET = "professional"

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
_BOLD_WEIGHTS = ("bold", "600", "700", "800", "900")


# --- Records ---

@dataclass(frozen=True)
class TextColors:
    primary: str = "#2D3748"
    secondary: str = "#718096"
    light: str = "#A0AEC0"


@dataclass(frozen=True)
class Colors:
    primary: str = "#4A5568"
    accent: str = "#5B7FBA"
    text: TextColors = field(default_factory=TextColors)
    background: str = "#FFFFFF"
    divider: str = "#E2E8F0"
    section_bg: str = "#F7FAFC"


@dataclass(frozen=True)
class Fonts:
    primary: str = "Calibri"
    pdf_regular: str = "Helvetica"
    pdf_bold: str = "Helvetica-Bold"


@dataclass(frozen=True)
class FontSizes:
    name: float = 24
    job_title: float = 13
    section_header: float = 12
    body: float = 11
    contact: float = 10
    date: float = 10


@dataclass(frozen=True)
class FontWeights:
    name: str = "bold"
    job_title: str = "600"
    section_header: str = "bold"
    company: str = "normal"
    body: str = "normal"


@dataclass(frozen=True)
class Typography:
    fonts: Fonts = field(default_factory=Fonts)
    sizes: FontSizes = field(default_factory=FontSizes)
    weights: FontWeights = field(default_factory=FontWeights)


@dataclass(frozen=True)
class Margins:
    top: float = 40
    right: float = 45
    bottom: float = 40
    left: float = 45


@dataclass(frozen=True)
class Spacing:
    page_margin: Margins = field(default_factory=Margins)
    section_gap: float = 18
    job_gap: float = 14
    bullet_gap: float = 6
    line_height: float = 1.4
    name_to_contact: float = 4
    contact_to_summary: float = 16
    header_to_content: float = 10
    section_header_above: float = 4


@dataclass(frozen=True)
class LayoutRules:
    page_width: float = 612
    page_height: float = 792
    bullet_indent: float = 20
    date_align: str = "right"
    max_bullets_per_role: int = 5
    max_pages: int = 2
    continuation_markers: bool = False


@dataclass(frozen=True)
class Underline:
    enabled: bool = True
    thickness: float = 1
    color: str = "#E2E8F0"
    gap: float = 6


@dataclass(frozen=True)
class SectionHeader:
    underline: Underline = field(default_factory=Underline)
    uppercase: bool = True
    letter_spacing: float = 0.5


@dataclass(frozen=True)
class Sections:
    header: SectionHeader = field(default_factory=SectionHeader)


@dataclass(frozen=True)
class Bullet:
    symbol: str = "•"
    color: str = "#4A5568"
    size: float = 11


@dataclass(frozen=True)
class Padding:
    top: float = 16
    right: float = 20
    bottom: float = 16
    left: float = 20


@dataclass(frozen=True)
class NameCard:
    enabled: bool = True
    background: str = "#F7FAFC"
    padding: Padding = field(default_factory=Padding)
    border_radius: float = 0


@dataclass(frozen=True)
class Elements:
    bullet: Bullet = field(default_factory=Bullet)
    name_card: NameCard = field(default_factory=NameCard)
    job_separator: bool = False


@dataclass(frozen=True)
class ThemeConfig:
    name: str = "base"
    colors: Colors = field(default_factory=Colors)
    typography: Typography = field(default_factory=Typography)
    spacing: Spacing = field(default_factory=Spacing)
    layout: LayoutRules = field(default_factory=LayoutRules)
    sections: Sections = field(default_factory=Sections)
    elements: Elements = field(default_factory=Elements)

    @property
    def content_width(self) -> float:
        margin = self.spacing.page_margin
        return self.layout.page_width - margin.left - margin.right

    @property
    def content_left(self) -> float:
        return self.spacing.page_margin.left


BASE = ThemeConfig()


# --- Presets (partial overrides over BASE) ---

CLASSIC_PRESET = {
    "colors": {
        "primary": "#000000",
        "accent": "#000000",
        "text": {"primary": "#000000", "secondary": "#000000", "light": "#000000"},
        "background": "#FFFFFF",
        "divider": "#000000",
        "section_bg": "#FFFFFF",
    },
    "typography": {
        "fonts": {"primary": "Arial"},
        "sizes": {"name": 22, "job_title": 12, "section_header": 11, "body": 10, "contact": 10, "date": 10},
        "weights": {"job_title": "bold"},
    },
    "spacing": {
        "page_margin": {"top": 36, "right": 36, "bottom": 36, "left": 36},
        "section_gap": 12,
        "job_gap": 10,
        "bullet_gap": 4,
        "line_height": 1.2,
        "name_to_contact": 2,
        "contact_to_summary": 12,
        "header_to_content": 8,
    },
    "sections": {"header": {"underline": {"enabled": False, "thickness": 0}}},
    "elements": {
        "bullet": {"color": "#000000", "size": 10},
        "name_card": {
            "enabled": False,
            "background": "#FFFFFF",
            "padding": {"top": 0, "right": 0, "bottom": 0, "left": 0},
        },
    },
}

PROFESSIONAL_PRESET = {
    "spacing": {"section_gap": 12},
}

MODERN_PRESET = {
    "colors": {
        "primary": "#2D3748",
        "accent": "#4299E1",
        "text": {"primary": "#1A202C", "secondary": "#4A5568", "light": "#718096"},
        "divider": "#CBD5E0",
        "section_bg": "#EDF2F7",
    },
    "typography": {
        "sizes": {"name": 26, "job_title": 14, "section_header": 13, "body": 11, "contact": 10, "date": 10},
    },
    "spacing": {
        "page_margin": {"top": 36, "right": 40, "bottom": 36, "left": 40},
        "section_gap": 20,
        "job_gap": 16,
        "bullet_gap": 8,
        "line_height": 1.5,
        "name_to_contact": 6,
        "contact_to_summary": 18,
        "header_to_content": 12,
    },
    "sections": {
        "header": {
            "underline": {"thickness": 2, "color": "#CBD5E0", "gap": 8},
            "letter_spacing": 1,
        },
    },
    "elements": {
        "bullet": {"color": "#4299E1", "size": 12},
        "name_card": {
            "background": "#EDF2F7",
            "padding": {"top": 20, "right": 24, "bottom": 20, "left": 24},
            "border_radius": 4,
        },
        "job_separator": True,
    },
}

PRESETS = {
    "classic": CLASSIC_PRESET,
    "professional": PROFESSIONAL_PRESET,
    "modern": MODERN_PRESET,
}

PRESET_INFO = {
    "classic": ("Classic ATS", "Black and white, no decoration. Maximum ATS compatibility."),
    "professional": ("Professional", "Muted slate palette with a soft name card. Balanced default."),
    "modern": ("Modern", "Blue accents, roomier spacing and rounded name card."),
}


# --- Merge functions (one per record type) ---

def _apply(record, override: dict, nested: dict):
    """Apply ``override`` to ``record`` key-by-key.

    ``nested`` maps field names holding sub-records to the merge function for
    that sub-record type. Scalar fields are replaced outright.
    """
    if not override:
        return record
    if not isinstance(override, dict):
        raise ThemeError(f"{type(record).__name__} override must be a mapping, got {type(override).__name__}")
    known = {f.name for f in dataclasses.fields(record)}
    changes = {}
    for key, value in override.items():
        if key not in known:
            raise ThemeError(f"Unknown {type(record).__name__} key: {key!r}", field=key)
        if key in nested:
            changes[key] = nested[key](getattr(record, key), value)
        else:
            changes[key] = value
    return dataclasses.replace(record, **changes)


def merge_text_colors(base: TextColors, override: dict) -> TextColors:
    return _apply(base, override, {})


def merge_colors(base: Colors, override: dict) -> Colors:
    return _apply(base, override, {"text": merge_text_colors})


def merge_fonts(base: Fonts, override: dict) -> Fonts:
    return _apply(base, override, {})


def merge_font_sizes(base: FontSizes, override: dict) -> FontSizes:
    return _apply(base, override, {})


def merge_font_weights(base: FontWeights, override: dict) -> FontWeights:
    return _apply(base, override, {})


def merge_typography(base: Typography, override: dict) -> Typography:
    return _apply(base, override, {
        "fonts": merge_fonts,
        "sizes": merge_font_sizes,
        "weights": merge_font_weights,
    })


def merge_margins(base: Margins, override: dict) -> Margins:
    return _apply(base, override, {})


def merge_spacing(base: Spacing, override: dict) -> Spacing:
    return _apply(base, override, {"page_margin": merge_margins})


def merge_layout(base: LayoutRules, override: dict) -> LayoutRules:
    return _apply(base, override, {})


def merge_underline(base: Underline, override: dict) -> Underline:
    return _apply(base, override, {})


def merge_section_header(base: SectionHeader, override: dict) -> SectionHeader:
    return _apply(base, override, {"underline": merge_underline})


def merge_sections(base: Sections, override: dict) -> Sections:
    return _apply(base, override, {"header": merge_section_header})


def merge_bullet(base: Bullet, override: dict) -> Bullet:
    return _apply(base, override, {})


def merge_padding(base: Padding, override: dict) -> Padding:
    return _apply(base, override, {})


def merge_name_card(base: NameCard, override: dict) -> NameCard:
    return _apply(base, override, {"padding": merge_padding})


def merge_elements(base: Elements, override: dict) -> Elements:
    return _apply(base, override, {"bullet": merge_bullet, "name_card": merge_name_card})


def merge_theme(base: ThemeConfig, override: dict) -> ThemeConfig:
    """Merge a full (partial) preset override into ``base``."""
    return _apply(base, override, {
        "colors": merge_colors,
        "typography": merge_typography,
        "spacing": merge_spacing,
        "layout": merge_layout,
        "sections": merge_sections,
        "elements": merge_elements,
    })


# --- Public API ---

def resolve(preset: str = DEFAULT_PRESET) -> ThemeConfig:
    """Resolve a preset name into a complete, immutable ThemeConfig.

    Args:
        preset: "classic", "professional" or "modern" (case-insensitive).
            Anything else falls back to "professional".

    Returns:
        ThemeConfig built from BASE with the preset merged over it.
    """
    key = (preset or "").strip().lower()
    if key not in PRESETS:
        logger.warning("Unknown theme preset %r, falling back to %s", preset, DEFAULT_PRESET)
        key = DEFAULT_PRESET
    theme = merge_theme(BASE, PRESETS[key])
    return dataclasses.replace(theme, name=key)


def theme_to_dict(theme: ThemeConfig) -> dict:
    return dataclasses.asdict(theme)


def list_presets() -> list:
    """Display metadata for each preset, in menu order."""
    return [
        {"id": key, "name": PRESET_INFO[key][0], "description": PRESET_INFO[key][1]}
        for key in PRESETS
    ]


def line_height(theme: ThemeConfig, size: float) -> float:
    return size * theme.spacing.line_height


def is_bold(weight: str) -> bool:
    return str(weight).lower() in _BOLD_WEIGHTS


def format_section_header(theme: ThemeConfig, title: str) -> str:
    return title.upper() if theme.sections.header.uppercase else title


def hex_to_rgb(color: str) -> tuple:
    value = color.lstrip("#")
    return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))


def validate_theme(theme: ThemeConfig) -> list:
    """Return a list of problems with a (possibly hand-built) theme. Empty = OK."""
    errors = []

    def _walk(record, path):
        for f in dataclasses.fields(record):
            value = getattr(record, f.name)
            where = f"{path}.{f.name}" if path else f.name
            if dataclasses.is_dataclass(value):
                _walk(value, where)
            elif where.startswith("colors.") or f.name in ("color", "background"):
                if not isinstance(value, str) or not _HEX_COLOR.match(value):
                    errors.append(f"Invalid color at {where}: {value}")

    _walk(theme, "")

    for f in dataclasses.fields(theme.typography.sizes):
        size = getattr(theme.typography.sizes, f.name)
        if size <= 0:
            errors.append(f"Font size {f.name} must be positive, got {size}")

    spacing = theme.spacing
    for f in dataclasses.fields(spacing):
        value = getattr(spacing, f.name)
        if f.name == "page_margin":
            for side in dataclasses.fields(value):
                if getattr(value, side.name) < 0:
                    errors.append(f"Page margin {side.name} must be non-negative")
        elif value < 0:
            errors.append(f"Spacing {f.name} must be non-negative, got {value}")
    if spacing.line_height < 1:
        errors.append(f"Line height multiplier must be >= 1, got {spacing.line_height}")

    if theme.content_width <= 0 or theme.content_width > theme.layout.page_width:
        errors.append(f"Content width {theme.content_width} out of range for page width {theme.layout.page_width}")
    if theme.layout.max_bullets_per_role < 1:
        errors.append("max_bullets_per_role must be at least 1")

    return errors
