"""Prompt templates for render edits.

Global edits send the user's text as-is. Every other edit kind wraps the
text in one of the templates below so the image model knows what to keep,
what to change, and how the attached images relate to each other.
"""

# Camera presets for multi-view grids, keyed by the label users pick.
CAMERA_INSTRUCTIONS: dict[str, str] = {
    "eye-level": "Standard eye-level perspective, camera at about 1.6 m.",
    "wide": "Wide-angle lens (16 mm), showing up to three walls of the room.",
    "top-down": "Three-quarter top-down cutaway, high angle looking into the room.",
    "low": "Low hero shot from near floor level, looking slightly up.",
    "corner": "Corner perspective, looking diagonally across the full room.",
    "overhead": "Direct 90-degree overhead plan view showing layout and circulation.",
    "macro": "Close-up detail shot of materials and decor, shallow depth of field.",
    "fisheye": "Fish-eye lens (10 mm), exaggerated ultra-wide view of the space.",
    "straight-on": "Symmetrical one-point perspective facing the back wall.",
    "isometric": "True isometric projection from 45 degrees, no vanishing point.",
    "dramatic": "Cinematic low-key lighting, low angle, 35 mm lens, strong shadows.",
    "photographer": "Editorial shot at standing height, 50 mm lens, true verticals.",
}

MULTICAM_PRESETS: dict[str, tuple[str, ...]] = {
    "default": ("eye-level", "top-down", "wide", "macro"),
    "overview": ("wide", "corner", "overhead", "isometric"),
    "editorial": ("photographer", "straight-on", "dramatic", "macro"),
}

PHOTOREAL_GUARD = """Output must look like professional architectural photography:
physically accurate materials, consistent natural lighting, no cartoon,
illustrated or CGI appearance."""

SELECTIVE_EDIT_TEMPLATE = """Edit only part of this interior render.

The attached mask marks the area to change (opaque = edit, transparent = keep).
Selected area: {region}.

Change requested: {directive}

Everything outside the selected area must stay pixel-identical: same
furniture, walls, floor, lighting and camera. Blend the edit seamlessly
into its surroundings with matching perspective and shadows.
{reference_note}
{guard}"""

SELECTIVE_REFERENCE_NOTE = (
    "The last attached image is a reference product; reproduce it faithfully "
    "inside the selected area."
)

COMPOSITE_TEMPLATE = """Place the attached objects into this interior render.

The first image is the room. The following images are the objects, in
this order:
{placements}

{directive}

Keep the room itself unchanged. Scale every object realistically for the
space, match the room's perspective and lighting, and cast correct shadows.
{guard}"""

MULTICAM_TEMPLATE = """Create one presentation board showing this exact room design
from {count} camera angles, laid out as a {rows}x{columns} grid with thin
borders between panels.

Panels, left to right and top to bottom:
{panels}
{focus}
Every panel must show the same furniture, materials, colors and lighting.
{directive}
{guard}"""

MULTICAM_FOCUS_NOTE = "Center every panel on this part of the room: {region}.\n"

ZONE_VIEW_TEMPLATE = """Render a photorealistic eye-level view of one zone of a floor plan.

Attached images, in order:
{inputs}
The LAST image is the floor-plan crop of the zone; follow its layout exactly.

Zone: {region}

{directive}

Show only this zone, at eye level, with furniture placed where the plan
shows it. Use the style references for materials and palette only.
{guard}"""

GRID_POSITIONS = {
    (2, 1): ("Left", "Right"),
    (2, 2): ("Top-Left", "Top-Right", "Bottom-Left", "Bottom-Right"),
}

ANALYSIS_SYSTEM_PROMPT = """You analyze interior design images and floor-plan crops.

Reply with a single JSON object and nothing else:
{"summary": "<one sentence describing the space>",
 "items": [{"name": "...", "category": "furniture|decor|fixture|architecture",
            "position": "<where in the image>", "description": "<materials, colors>"}],
 "features": ["<windows, doors, columns and other fixed features>"]}"""

ANALYSIS_USER_PROMPT = "Describe this image for an interior render.{hint}"
