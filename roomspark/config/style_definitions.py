"""
Room style definitions and the prompt builder used for image generation.

Each style appends a descriptive clause (materials, palette, era cues) to a fixed
base instruction that keeps the room's walls and structure intact.
"""
from enum import Enum
from typing import Optional, Union


class RoomStyle(str, Enum):
    MID_CENTURY_MODERN = "mid_century_modern"
    SCANDINAVIAN = "scandinavian"
    INDUSTRIAL = "industrial"
    BOHEMIAN = "bohemian"
    MODERN_FARMHOUSE = "modern_farmhouse"
    JAPANDI = "japandi"
    TRADITIONAL = "traditional"
    CONTEMPORARY = "contemporary"
    COASTAL = "coastal"
    ECLECTIC = "eclectic"
    TRANSITIONAL = "transitional"
    GENERIC = "generic"


BASE_PROMPT = (
    "Generate an image of this room but filled with furniture. "
    "Don't modify the walls/structure of the room, but you can put things on the walls and floor."
)

DEFAULT_STYLE_CLAUSE = "Add furniture with a sleek and modern design that would be appropriate for the space."

STYLE_CLAUSES = {
    RoomStyle.MID_CENTURY_MODERN: (
        "Style this space with Mid-Century Modern design featuring clean lines, tapered legs, warm wood tones, "
        "and pops of retro colors. Include minimalist furniture from the 1950s-60s with a futuristic twist. "
        "Focus on sleek geometric shapes and iconic pieces."
    ),
    RoomStyle.SCANDINAVIAN: (
        "Create a Scandinavian-style space with light, airy atmosphere using neutral tones, natural textures, "
        "and simple functionality. Feature light woods, cozy textiles, and minimal clutter. "
        "Emphasize hygge and understated elegance."
    ),
    RoomStyle.INDUSTRIAL: (
        "Design with Industrial style featuring exposed brick, metal pipes, concrete floors, and reclaimed wood. "
        "Create raw, unfinished textures that give it a warehouse or loft-like vibe. "
        "Include vintage industrial lighting and furniture."
    ),
    RoomStyle.BOHEMIAN: (
        "Style as Bohemian (Boho) with eclectic and layered design using bold colors, global patterns, and a mix "
        "of vintage and handmade items. Include plenty of plants, textiles, floor cushions, and relaxed furniture. "
        "Create a free-spirited, artistic atmosphere."
    ),
    RoomStyle.MODERN_FARMHOUSE: (
        "Create a Modern Farmhouse style with a cozy blend of rustic charm and modern polish. Use white walls, "
        "black accents, shiplap, distressed wood, and soft textures. "
        "Include vintage farmhouse elements with contemporary comfort."
    ),
    RoomStyle.JAPANDI: (
        "Design with Japandi style, a fusion of Japanese minimalism and Scandinavian coziness. Focus on clean "
        "lines, low furniture, natural elements, and serene neutral tones. "
        "Emphasize simplicity, functionality, and zen-like tranquility."
    ),
    RoomStyle.TRADITIONAL: (
        "Style with Traditional design featuring classic and elegant elements with symmetry, rich colors, ornate "
        "furniture, and timeless decor. Include crown moldings, antique-style pieces, layered drapes, "
        "and sophisticated details."
    ),
    RoomStyle.CONTEMPORARY: (
        "Create a Contemporary space with sleek and up-to-date design featuring smooth surfaces, neutral palettes, "
        "and geometric forms. Include open spaces, statement lighting, and current design trends with clean "
        "sophistication."
    ),
    RoomStyle.COASTAL: (
        "Design with Coastal style that's light, breezy, and inspired by the beach. Use whites, blues, natural "
        "fibers, and airy layouts for a relaxed seaside feel. Include nautical elements and weathered textures."
    ),
    RoomStyle.ECLECTIC: (
        "Style as Eclectic with bold and personal design that mixes different eras, colors, and textures in a "
        "curated yet cohesive way. No strict rules, just strong personality and creative combinations that "
        "tell a story."
    ),
    RoomStyle.TRANSITIONAL: (
        "Create a Transitional style with a balanced blend of traditional and contemporary elements. Use neutral "
        "colors, soft curves, and classic silhouettes with modern touches. Balance comfort with sophistication."
    ),
}


def parse_style(style: Union[RoomStyle, str, None]) -> RoomStyle:
    """Map a raw style value onto RoomStyle, falling back to GENERIC"""
    if isinstance(style, RoomStyle):
        return style
    if not style:
        return RoomStyle.GENERIC
    try:
        return RoomStyle(str(style).strip().lower())
    except ValueError:
        return RoomStyle.GENERIC


def build_prompt(style: Union[RoomStyle, str, None] = None) -> str:
    """Build the generation instruction for a style; unknown styles get the generic clause"""
    clause = STYLE_CLAUSES.get(parse_style(style), DEFAULT_STYLE_CLAUSE)
    return f"{BASE_PROMPT} {clause}"


def style_label(style: Optional[Union[RoomStyle, str]]) -> str:
    """Human readable name, e.g. mid_century_modern -> Mid Century Modern"""
    return parse_style(style).value.replace("_", " ").title()
