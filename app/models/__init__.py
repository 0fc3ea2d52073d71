from app.models.tree import Tree
from app.models.plant import Plant
from app.models.sighting import Sighting
from app.models.tree_entry import TreeEntry
from app.models.views import plant_log, species_log

__all__ = [
    "Tree",
    "Plant",
    "Sighting",
    "TreeEntry",
    "plant_log",
    "species_log",
]
