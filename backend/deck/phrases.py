"""Base phrase pool and placeholder hints for the generated deck."""

BASE_PHRASES: list[str] = [
    "Static",
    "Doll",
    "Mirror",
    "Whisper",
    "Footsteps",
    "Clock",
    "Shadow",
    "Key",
    "Silence",
    "Portrait",
    "Cold spot",
    "Music box",
    "Scratching",
    "Empty swing",
    "Reflection",
    "Unknown call",
    "Scarecrow",
    "Basement",
    "Attic",
    "Locked door",
]

IMAGE_HINTS: list[str] = [
    "eerie forest", "ghostly figure", "haunted mansion", "creepy doll", "dark silhouette",
    "monster shadow", "abstract horror", "spooky landscape", "ominous object", "spectral face",
    "abandoned room", "creepy corridor", "glowing eyes", "mysterious door", "twisted tree",
    "old photograph", "dusty artifact", "antique toy", "dark cellar", "hidden passage",
]


def placeholder_hint(phrase: str, position: int) -> str:
    """Pick the hint used for placeholder imagery.

    Short phrases (two words or fewer) describe themselves well enough;
    longer ones borrow a generic hint by position.
    """
    if len(phrase.split(" ")) <= 2:
        return phrase.lower()
    return IMAGE_HINTS[position % len(IMAGE_HINTS)]
