from typing import Dict, Iterable, List
import colorsys

# Two fixed sides for the bipartite view
BIPARTITE_COLORS = ('#e53935', '#1e88e5')

# Hue offset for the analysis palette so the first class is not plain red
PALETTE_HUE_OFFSET = 0.08


def palette(count: int) -> List[str]:
    """
    Evenly spaced, fully saturated hues for `count` classes.

    Used for connected components and chromatic color classes, where the
    only requirement is that neighbouring classes are easy to tell apart.
    """
    if count <= 0:
        return []
    colors = []
    for index in range(count):
        hue = (index / count + PALETTE_HUE_OFFSET) % 1.0
        r, g, b = colorsys.hsv_to_rgb(hue, 0.75, 0.95)
        colors.append('#{:02x}{:02x}{:02x}'.format(int(r * 255), int(g * 255), int(b * 255)))
    return colors


def class_colors(assignment: Dict[int, int], colors: Iterable[str]) -> Dict[int, str]:
    """Map node id -> hex color given node id -> class index."""
    colors = list(colors)
    return {node: colors[cls % len(colors)] for node, cls in assignment.items()} if colors else {}


def lighten_hex(hex_color: str, amount: float = 0.5) -> str:
    """Lightens a hex color by mixing it with white."""
    hex_color = hex_color.lstrip('#')
    r, g, b = tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))
    r = int(r + (255 - r) * amount)
    g = int(g + (255 - g) * amount)
    b = int(b + (255 - b) * amount)
    return '#{:02x}{:02x}{:02x}'.format(r, g, b)


def is_hex_color(value: str) -> bool:
    """True for #rrggbb strings."""
    if not isinstance(value, str) or len(value) != 7 or not value.startswith('#'):
        return False
    try:
        int(value[1:], 16)
    except ValueError:
        return False
    return True
