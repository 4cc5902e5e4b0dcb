# Domain Review Package
from .models import CardRecord, ItemKind, ReviewState
from .ports import CardStore

__all__ = ["ReviewState", "CardRecord", "ItemKind", "CardStore"]
