"""Shared constants for the card image pipeline."""

# Languages published by the catalog
VALID_LANGUAGES = ["EN", "DE", "FR", "IT"]

DEFAULT_PRIMARY_LANGUAGE = "EN"

# Zero-padding used for card and set numbers in file names
CARD_NUMBER_WIDTH = 3
SET_ID_WIDTH = 3

# Target pixel size per variant. Width is shared; only the crop changes height.
CARD_WIDTH = 734
FULL_CARD_HEIGHT = 1024

EXPECTED_DIMENSIONS = {
    "original": (CARD_WIDTH, FULL_CARD_HEIGHT),
    "art_only": (CARD_WIDTH, 603),
    "art_and_name": (CARD_WIDTH, 767),
}

# (top band end, bottom band start) as fractions of the full card height.
# The two bands are stacked vertically; the text/stat box between is dropped.
CROP_FRACTIONS = {
    "art_only": (0.52, 0.931),
    "art_and_name": (0.674, 0.925),
}

DEFAULT_TOLERANCE_PX = 2

# Reconciliation passes per card before giving up
MAX_ATTEMPTS = 3

# Directory holding the language-independent art-only variant
SHARED_SEGMENT = "shared"
ART_ONLY_DIR = "art_only"
ART_AND_NAME_DIR = "art_and_name"

# Encoder settings
WEBP_QUALITY = 80
WEBP_METHOD = 6
AVIF_QUALITY = 50
AVIF_SPEED = 1

# Source files that may linger after a download
SOURCE_EXTENSIONS = {".jpg", ".jpeg", ".png"}

# Suffix for staged writes before they are moved into place
STAGING_SUFFIX = ".part"
