"""
Procurement service.

Point d'entrée des flux d'achat liste -> pedido.

La logique vit dans :
    backend.services.fulfillment   (état d'approvisionnement d'un item)
    backend.services.coherence     (coût réel, déviation, éligibilité)
    backend.services.sequence      (codes pedido)
    backend.services.conversion    (transaction de conversion)
"""

from backend.services.coherence import evaluate, list_view_from_model
from backend.services.conversion import (
    ConversionCommand,
    ItemSelection,
    convert_list,
    run_conversion,
)
from backend.services.fulfillment import summarize, summarize_requirement_item
from backend.services.sequence import next_order_code

__all__ = [
    "ConversionCommand",
    "ItemSelection",
    "convert_list",
    "evaluate",
    "list_view_from_model",
    "next_order_code",
    "run_conversion",
    "summarize",
    "summarize_requirement_item",
]
