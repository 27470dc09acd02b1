"""
Restaurant data files: menu, delivery fees by region, and profile.

A restaurant is swapped by swapping its data directory. Missing files
fall back to empty data; the profile falls back to environment settings.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from order_agent.config import settings

logger = logging.getLogger(__name__)

MENU_FILE = "cardapio.json"
DELIVERY_FEES_FILE = "taxas.json"
PROFILE_FILE = "config.json"


@dataclass(frozen=True)
class RestaurantData:
    """Everything the attendant needs to know about the restaurant."""

    name: str
    city: str
    pix_key: str = ""
    pix_receiver: str = ""
    menu: Any = field(default_factory=list)
    delivery_fees: Any = field(default_factory=list)
    profile: dict[str, Any] = field(default_factory=dict)


def _load_json(path: Path) -> Optional[Any]:
    """Read a JSON file, returning None when missing or unreadable."""
    if not path.exists():
        logger.debug("Restaurant data file not found: %s", path)
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not load restaurant data %s: %s", path, exc)
        return None


def load_restaurant_data(data_dir: Optional[str] = None) -> RestaurantData:
    """Load the restaurant's data directory into a RestaurantData."""
    base = Path(data_dir or settings.restaurant.data_dir)
    menu = _load_json(base / MENU_FILE)
    fees = _load_json(base / DELIVERY_FEES_FILE)
    profile = _load_json(base / PROFILE_FILE)
    if not isinstance(profile, dict):
        profile = {}

    data = RestaurantData(
        name=profile.get("nome") or settings.restaurant.name,
        city=profile.get("cidade") or settings.restaurant.city,
        pix_key=profile.get("pix_key") or settings.restaurant.pix_key,
        pix_receiver=profile.get("pix_recebedor") or settings.restaurant.pix_receiver,
        menu=menu if menu is not None else [],
        delivery_fees=fees if fees is not None else [],
        profile=profile,
    )
    logger.info("Restaurant data loaded for '%s' from %s", data.name, base)
    return data
