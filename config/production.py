"""
Flexible-packaging production constants.

Static domain values used by the calculation engine. Tunable values
(scrap meters, variable scrap ratio, density overrides) live in settings
and the config service instead.
"""

# =============================================================================
# MATERIAL DENSITIES (g/cm³)
# =============================================================================
# Keyed by MaterialType value. Used when a material has no density of its own
# and the operator has not configured one for its type.

DEFAULT_MATERIAL_DENSITIES: dict[str, float] = {
    "BOPP": 0.91,
    "BOPP MATTE": 0.91,
    "BOPP METALLIZED": 0.91,
    "BOPP DT": 0.91,
    "BOPP PEARL": 0.70,       # Cavitated film is lighter
    "BOPP WHITE": 0.95,       # Pigmented
    "PET": 1.40,
    "PET DT": 1.40,
    "PET PVDC": 1.45,
    "PET METALLIZED": 1.40,
    "PE": 0.92,
    "PE WHITE": 1.00,         # White pigment raises density
    "CPP": 0.90,
    "BOPA": 1.15,
    "PAPER": 1.00,
    "FOIL": 2.70,
}

# Last resort when a type is missing from every table
FALLBACK_DENSITY = 0.91

# Print substrates that need a second printing pass
REPRINT_MATERIAL_TYPES = frozenset({"BOPP DT", "PET DT"})


# =============================================================================
# GEOMETRY
# =============================================================================

# Ideal layer width when the recipe leaves it blank: print web + margin
DEFAULT_WIDTH_MARGIN_MM = 20

MM_PER_M = 1000
G_PER_KG = 1000


# =============================================================================
# RECOMMENDATION SCORING (lower score is better)
# =============================================================================

THICKNESS_MISMATCH_PENALTY = 1000
THICKNESS_DIFF_WEIGHT = 100

# Thickness error above this ratio pushes a roll to last resort
THICKNESS_LAST_RESORT_RATIO = 0.30
THICKNESS_LAST_RESORT_PENALTY = 10000

# Thickness error above this ratio is flagged in the notes
THICKNESS_WARNING_RATIO = 0.20


# =============================================================================
# WORKFLOW
# =============================================================================

STAGE_PRINT = "Print"
STAGE_REPRINT = "Reprint"
STAGE_LAMINATION = "Lamination"
STAGE_TRILAMINATION = "Trilamination"
STAGE_SLITTING = "Slitting"
STAGE_BAG_MAKING = "Bag Making"

ALL_STAGES = [
    STAGE_PRINT,
    STAGE_REPRINT,
    STAGE_LAMINATION,
    STAGE_TRILAMINATION,
    STAGE_SLITTING,
    STAGE_BAG_MAKING,
]

SUBSTITUTE_LABEL_SUFFIX = " (COMPLEMENT)"

# Order code and stock sequences are kept apart from the order list
ORDER_SEQUENCE_NAME = "production_orders"
