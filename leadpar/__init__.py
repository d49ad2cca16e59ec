"""LeadPar: pick the first meaningful paragraph out of arbitrary web pages."""
from leadpar.core.models import BatchResult, ExcerptEntry, ExtractOptions
from leadpar.scrape.paragraph import first_paragraph
from leadpar.services.excerpts import collect_batch, collect_excerpts
from leadpar.text.entities import EntityDecoder, decode_entities

__version__ = "1.0.0"

__all__ = [
    "BatchResult",
    "ExcerptEntry",
    "ExtractOptions",
    "EntityDecoder",
    "decode_entities",
    "first_paragraph",
    "collect_batch",
    "collect_excerpts",
]
