from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class Capability(str, Enum):
    IMAGE_GENERATION = "image-generation"
    DIAGRAM_GENERATION = "diagram-generation"
    DOCUMENT_AUGMENTED = "document-augmented"
    GROUNDED_PLACES = "grounded-places"
    GROUNDED_SEARCH = "grounded-search"
    PLAIN = "plain"


class GroundingTool(str, Enum):
    WEB_SEARCH = "web-search"
    PLACES = "places"


def _compile(keywords: tuple[str, ...]) -> re.Pattern[str]:
    cleaned = [k.strip().lower() for k in keywords if k and k.strip()]
    if not cleaned:
        return re.compile("")
    alternation = "|".join(re.escape(k) for k in cleaned)
    return re.compile(rf"\b(?:{alternation})\b")


def _keywords(value: object, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return default


@dataclass(frozen=True)
class KeywordRules:
    """Keyword lists that drive routing. Matching is whole-word on the lowercased prompt."""

    version: str = "1"
    image: tuple[str, ...] = ("draw", "generate", "create an image", "picture of")
    diagram: tuple[str, ...] = ("flowchart", "diagram")
    places: tuple[str, ...] = ("near me", "nearby", "directions", "restaurants", "hotels", "locations")
    search: tuple[str, ...] = ("latest", "recent", "current", "news", "who won")
    _patterns: dict[str, re.Pattern[str]] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for name in ("image", "diagram", "places", "search"):
            self._patterns[name] = _compile(getattr(self, name))

    def matches(self, group: str, lowered_prompt: str) -> bool:
        pattern = self._patterns[group]
        return bool(pattern.pattern) and pattern.search(lowered_prompt) is not None

    @classmethod
    def from_config(cls, config: dict | None) -> KeywordRules:
        """Build rules from a ``KeywordRules`` config block; missing lists keep the defaults."""
        if not config:
            return DEFAULT_RULES
        defaults = DEFAULT_RULES
        return cls(
            version=str(config.get("Version", defaults.version)),
            image=_keywords(config.get("Image"), defaults.image),
            diagram=_keywords(config.get("Diagram"), defaults.diagram),
            places=_keywords(config.get("Places"), defaults.places),
            search=_keywords(config.get("Search"), defaults.search),
        )


DEFAULT_RULES = KeywordRules()


@dataclass(frozen=True)
class Classification:
    capability: Capability
    tools: frozenset[GroundingTool] = frozenset()

    @property
    def is_image(self) -> bool:
        return self.capability is Capability.IMAGE_GENERATION

    @property
    def is_diagram(self) -> bool:
        return self.capability is Capability.DIAGRAM_GENERATION


def classify(
    prompt_text: str,
    has_attachment: bool,
    *,
    has_document: bool = False,
    rules: KeywordRules = DEFAULT_RULES,
) -> Classification:
    """Pick the backend capability and grounding tools for one user turn.

    Image generation (only without an attachment) wins outright, then diagram generation;
    neither carries grounding tools. Places grounding suppresses search grounding when
    both match. A document attachment with no other match is document-augmented.
    """
    lowered = (prompt_text or "").lower()

    if not has_attachment and rules.matches("image", lowered):
        return Classification(Capability.IMAGE_GENERATION)
    if rules.matches("diagram", lowered):
        return Classification(Capability.DIAGRAM_GENERATION)

    if rules.matches("places", lowered):
        return Classification(Capability.GROUNDED_PLACES, frozenset({GroundingTool.PLACES}))
    if rules.matches("search", lowered):
        return Classification(Capability.GROUNDED_SEARCH, frozenset({GroundingTool.WEB_SEARCH}))

    if has_document:
        return Classification(Capability.DOCUMENT_AUGMENTED)
    return Classification(Capability.PLAIN)


def build_diagram_prompt(prompt_text: str) -> str:
    return (
        f'Create a flowchart based on this request: "{prompt_text}". Use Mermaid.js syntax. '
        "Only output the Mermaid code inside a ```mermaid block."
    )
