from typing import Tuple

# Title substrings that mark an accessory rather than the product itself (en/fr/de)
ACCESSORY_KEYWORDS: Tuple[str, ...] = (
    "case", "cover", "screen protector", "film", "charger", "cable",
    "adapter", "holder", "stand", "skin", "sleeve", "pouch", "strap",
    "coque", "hülle", "schutzhülle", "tasche", "étui", "protection",
    "pellicule",
)

# Stricter list for the offline title check: adds mounts, lenses, Japanese terms
EXTENDED_ACCESSORY_KEYWORDS: Tuple[str, ...] = ACCESSORY_KEYWORDS + (
    "tempered glass", "wallet", "folio", "bumper", "shell", "mount",
    "tripod", "lens", "grip", "ring", "band",
    "ケース", "カバー", "フィルム", "充電器",
)

# Price strings with these are instalment or subscription prices, not one-time prices
SUBSCRIPTION_MARKERS: Tuple[str, ...] = (
    "/mo", " mo ", "monat", "mois", "month", "/m ",
    "x 24", "x 12", "now", "/wk",
)
