"""Normalized article record handed to the output sinks."""

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass(frozen=True)
class Article:
    """Result of a single extraction."""

    url: str
    title: str = ""
    content: str = ""
    authors: str = ""
    published_at: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Serialize with the field names the sinks expect."""
        return asdict(self)
