"""
Section ids, templates and colour grammar shared by the schemas and the validator.
"""

import re

BUILTIN_SECTIONS = (
    "hero",
    "about",
    "skills",
    "experience",
    "projects",
    "education",
    "testimonials",
    "certificates",
    "contact",
)

DEFAULT_SECTION_ORDER = list(BUILTIN_SECTIONS)

SECTION_DISPLAY_NAMES = {
    "hero": "Hero/Header",
    "about": "About Me",
    "skills": "Skills & Technologies",
    "experience": "Work Experience",
    "projects": "Projects & Portfolio",
    "education": "Education",
    "testimonials": "Testimonials",
    "certificates": "Certifications",
    "contact": "Contact Information",
}

CUSTOM_SECTION_PREFIX = "custom_"

KNOWN_TEMPLATES = ("minimal", "professional", "creative", "developer", "elegant", "designer", "bold")

DEFAULT_THEME = {
    "primaryColor": "#3B82F6",
    "backgroundColor": "#0F172A",
    "textColor": "#F8FAFC",
}

HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
HSL_COLOR_RE = re.compile(r"^hsl\(\s*\d+(?:\.\d+)?\s*,\s*\d+(?:\.\d+)?%?\s*,\s*\d+(?:\.\d+)?%?\s*\)$")
RGB_COLOR_RE = re.compile(r"^rgb\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*\)$")

CSS_NAMED_COLORS = frozenset("""
aliceblue antiquewhite aqua aquamarine azure beige bisque black blanchedalmond blue
blueviolet brown burlywood cadetblue chartreuse chocolate coral cornflowerblue cornsilk
crimson cyan darkblue darkcyan darkgoldenrod darkgray darkgreen darkgrey darkkhaki
darkmagenta darkolivegreen darkorange darkorchid darkred darksalmon darkseagreen
darkslateblue darkslategray darkslategrey darkturquoise darkviolet deeppink deepskyblue
dimgray dimgrey dodgerblue firebrick floralwhite forestgreen fuchsia gainsboro ghostwhite
gold goldenrod gray green greenyellow grey honeydew hotpink indianred indigo ivory khaki
lavender lavenderblush lawngreen lemonchiffon lightblue lightcoral lightcyan
lightgoldenrodyellow lightgray lightgreen lightgrey lightpink lightsalmon lightseagreen
lightskyblue lightslategray lightslategrey lightsteelblue lightyellow lime limegreen linen
magenta maroon mediumaquamarine mediumblue mediumorchid mediumpurple mediumseagreen
mediumslateblue mediumspringgreen mediumturquoise mediumvioletred midnightblue mintcream
mistyrose moccasin navajowhite navy oldlace olive olivedrab orange orangered orchid
palegoldenrod palegreen paleturquoise palevioletred papayawhip peachpuff peru pink plum
powderblue purple rebeccapurple red rosybrown royalblue saddlebrown salmon sandybrown
seagreen seashell sienna silver skyblue slateblue slategray slategrey snow springgreen
steelblue tan teal thistle tomato turquoise violet wheat white whitesmoke yellow
yellowgreen
""".split())


def is_builtin_section(section_id: str) -> bool:
    return section_id in BUILTIN_SECTIONS


def is_valid_color(value) -> bool:
    """Hex, hsl()/rgb() or a CSS named colour."""
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    if HEX_COLOR_RE.match(candidate) or HSL_COLOR_RE.match(candidate) or RGB_COLOR_RE.match(candidate):
        return True
    return candidate.lower() in CSS_NAMED_COLORS
