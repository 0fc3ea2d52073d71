import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """'Quercus robur L.' -> 'quercus-robur-l'"""
    folded = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", folded.lower()).strip("-")


def plant_key(scientific_name: Optional[str], common_name: Optional[str] = None) -> Optional[str]:
    """
    Key a plant record by its scientific name, falling back to the common name.

    Returns None when neither name yields a usable slug.
    """
    for candidate in (scientific_name, common_name):
        if candidate:
            slug = slugify(candidate)
            if slug:
                return slug
    return None


def normalize_key(key: str) -> str:
    return key.strip().lower()
