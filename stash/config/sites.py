"""
Per-domain extraction method registry.

The registry maps a domain name to the extraction method used for it: either
the readability heuristic or a set of four CSS selectors. It is loaded once per
run from ``sites.toml`` and is read-only afterwards.

Example document::

    ["example.com"]
    title = "h1.headline"
    body = "div.article-body"
    authors = ".byline"
    date = "time"

    ["auto.example.org"]
"""

import json
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from .logging import get_logger
from .models import AutoMethod, ExtractionMethod, ManualMethod
from .validation import FormatError


logger = get_logger(__name__)

SELECTOR_FIELDS = ("title", "body", "authors", "date")

AUTO = AutoMethod()


def parse_method(domain: str, value: Any, source: Union[str, Path] = "<registry>") -> ExtractionMethod:
    """
    Turn one raw registry value into an ExtractionMethod.

    This is the only place where the shape of an entry is inspected: no
    selector fields means AutoMethod, all four means ManualMethod.

    Args:
        domain: Domain the entry belongs to (for error messages)
        value: Raw deserialized value
        source: Document the value came from (for error messages)

    Returns:
        AutoMethod or ManualMethod

    Raises:
        FormatError: If the value matches neither shape
    """
    if value is None:
        return AUTO

    if not isinstance(value, Mapping):
        raise FormatError(
            source,
            f"expected a table of selectors, got {type(value).__name__}",
            domain=domain
        )

    present = [name for name in SELECTOR_FIELDS if name in value]
    if not present:
        return AUTO

    missing = [name for name in SELECTOR_FIELDS if name not in value]
    if missing:
        raise FormatError(
            source,
            f"manual rules need all of {', '.join(SELECTOR_FIELDS)}; missing {', '.join(missing)}",
            domain=domain
        )

    for name in SELECTOR_FIELDS:
        if not isinstance(value[name], str):
            raise FormatError(
                source,
                f"selector '{name}' must be a string, got {type(value[name]).__name__}",
                domain=domain
            )

    return ManualMethod(
        title=value["title"],
        body=value["body"],
        authors=value["authors"],
        date=value["date"]
    )


class MethodRegistry:
    """Read-only mapping from domain name to extraction method."""

    def __init__(self, methods: Optional[Dict[str, ExtractionMethod]] = None):
        self._methods: Mapping[str, ExtractionMethod] = MappingProxyType(dict(methods or {}))

    @classmethod
    def from_mapping(cls, document: Any, source: Union[str, Path] = "<registry>") -> "MethodRegistry":
        """
        Build a registry from an already deserialized document.

        Raises:
            FormatError: If the document or any entry is malformed
        """
        if not isinstance(document, Mapping):
            raise FormatError(source, "top level must be a table of domains")

        methods = {}
        for domain, value in document.items():
            methods[str(domain)] = parse_method(str(domain), value, source)

        return cls(methods)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "MethodRegistry":
        """
        Load the registry from a TOML or JSON document.

        A missing file yields an empty registry, so every domain falls back to
        the readability heuristic.

        Args:
            path: Location of the registry document

        Returns:
            MethodRegistry

        Raises:
            FormatError: If the file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            logger.info("No site registry found, using automatic extraction", path=str(path))
            return cls()

        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FormatError(path, f"unable to read file: {e}") from e

        try:
            if path.suffix.lower() == ".json":
                document = json.loads(raw)
            else:
                document = tomllib.loads(raw)
        except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise FormatError(path, str(e)) from e

        registry = cls.from_mapping(document, path)
        logger.debug("Site registry loaded", path=str(path), domains=registry.domains())
        return registry

    def lookup(self, domain: str) -> ExtractionMethod:
        """Return the method registered for *domain*, or AutoMethod."""
        return self._methods.get(domain, AUTO)

    def domains(self) -> List[str]:
        """Get the list of domains with an explicit entry."""
        return sorted(self._methods)

    def items(self):
        return self._methods.items()

    def __contains__(self, domain: object) -> bool:
        return domain in self._methods

    def __len__(self) -> int:
        return len(self._methods)

    def __repr__(self) -> str:
        return f"MethodRegistry({len(self)} domains)"
