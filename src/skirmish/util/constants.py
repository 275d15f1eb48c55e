"""Combat constants — cover, hit clamps, ability tuning.

All magic numbers of the combat rules, centralized here. ``GameConfig``
uses these as its defaults so a battle runs without any config file.
"""

# -- Cover ---------------------------------------------------------------

LOW_COVER_MODIFIER: int = -10
"""Hit-chance modifier against a defender standing in low cover."""

HIGH_COVER_MODIFIER: int = -25
"""Hit-chance modifier against a defender standing in high cover."""

# -- Hit resolution ------------------------------------------------------

MIN_HIT_CHANCE: int = 5
"""No attack is ever impossible."""

MAX_HIT_CHANCE: int = 95
"""No attack is ever guaranteed."""

SUPPRESSED_PENALTY: int = -15
"""Flat hit-chance modifier when the defender carries ``suppressed``."""

# -- Abilities -----------------------------------------------------------

SUPPRESS_DURATION: int = 2
"""Full turn cycles a suppression lasts."""

REPAIR_HEAL: int = 2
"""HP restored by one repair."""

REPAIR_CHARGES: int = 2
"""Repair uses per battle."""

# -- Unit defaults -------------------------------------------------------

DEFAULT_MOVE_RANGE: int = 4
DEFAULT_ATTACK_RANGE: int = 3
DEFAULT_ACCURACY: int = 70
DEFAULT_DAMAGE: tuple[int, int] = (1, 6)

# -- Status ids ----------------------------------------------------------

SUPPRESSED: str = "suppressed"
