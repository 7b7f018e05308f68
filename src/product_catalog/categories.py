"""Canonical category identifiers and their aliases."""

# Alias (lowercase, dashed) -> canonical category id
CATEGORY_ALIASES = {
    "tv": "tv",
    "tvs": "tv",
    "smart-tv": "tv",
    "smart-tvs": "tv",
    "televisao": "tv",
    "fridge": "fridge",
    "fridges": "fridge",
    "refrigerator": "fridge",
    "refrigerador": "fridge",
    "geladeira": "fridge",
    "geladeiras": "fridge",
    "air-conditioner": "air_conditioner",
    "air-conditioners": "air_conditioner",
    "ac": "air_conditioner",
    "ar-condicionado": "air_conditioner",
    "washer": "washer",
    "washing-machine": "washer",
    "lavadora": "washer",
    "maquina-de-lavar": "washer",
    "robot-vacuum": "robot_vacuum",
    "robot-vacuums": "robot_vacuum",
    "robo-aspirador": "robot_vacuum",
}


def canonical_category_id(category_id: str) -> str:
    """Resolve a category alias to its canonical id.

    Unknown values are returned lowercased so callers can still look them up
    and report them as unsupported.
    """
    key = category_id.strip().lower().replace("_", "-").replace(" ", "-")
    return CATEGORY_ALIASES.get(key, category_id.strip().lower())
