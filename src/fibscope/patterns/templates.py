"""
Pattern Template Catalog

Static table of harmonic templates and of the expected ratio sets used to
score every pattern kind. Templates are loaded once and never mutated.
"""

from typing import Dict, Iterator, Optional, Tuple

from ..constants import FIBONACCI_EXTENSION_PAIR, FIBONACCI_LEVELS, GOLDEN_RATIO
from ..models.patterns import PatternKind, PatternTemplate


# (AB, BC, CD, AD) per template, in matching priority order
DEFAULT_TEMPLATES: Tuple[PatternTemplate, ...] = (
    PatternTemplate(
        name="Gartley",
        kind=PatternKind.HARMONIC_GARTLEY,
        ratios=(0.618, 0.382, 1.272, 0.786),
        tolerance=0.05
    ),
    PatternTemplate(
        name="Butterfly",
        kind=PatternKind.HARMONIC_BUTTERFLY,
        ratios=(0.786, 0.382, 1.618, 1.27),
        tolerance=0.05
    ),
    PatternTemplate(
        name="Bat",
        kind=PatternKind.HARMONIC_BAT,
        ratios=(0.382, 0.886, 2.618, 1.618),
        tolerance=0.05
    ),
    PatternTemplate(
        name="Crab",
        kind=PatternKind.HARMONIC_CRAB,
        ratios=(0.382, 0.886, 3.618, 1.618),
        tolerance=0.05
    ),
)

# Expected ratios for every kind; harmonic kinds are filled from the templates
_STRUCTURAL_EXPECTED: Dict[PatternKind, Tuple[float, ...]] = {
    PatternKind.GOLDEN_SPIRAL: (GOLDEN_RATIO, GOLDEN_RATIO, GOLDEN_RATIO),
    PatternKind.FIBONACCI_EXTENSION: FIBONACCI_EXTENSION_PAIR,
    PatternKind.FIBONACCI_RETRACEMENT: FIBONACCI_LEVELS,
    PatternKind.NO_PATTERN: (),
}


class TemplateCatalog:
    """Ordered, read-only collection of harmonic templates."""

    def __init__(self, templates: Tuple[PatternTemplate, ...] = DEFAULT_TEMPLATES):
        if not templates:
            raise ValueError("TemplateCatalog needs at least one template")
        kinds = [t.kind for t in templates]
        if len(set(kinds)) != len(kinds):
            raise ValueError("TemplateCatalog kinds must be unique")
        self._templates = tuple(templates)
        self._by_kind = {t.kind: t for t in self._templates}

    def __iter__(self) -> Iterator[PatternTemplate]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    @property
    def templates(self) -> Tuple[PatternTemplate, ...]:
        return self._templates

    def get(self, kind: PatternKind) -> Optional[PatternTemplate]:
        """Template for a harmonic kind, None for other kinds."""
        return self._by_kind.get(kind)

    def by_name(self, name: str) -> Optional[PatternTemplate]:
        for template in self._templates:
            if template.name.lower() == name.lower():
                return template
        return None

    def expected_ratios(self, kind: PatternKind) -> Tuple[float, ...]:
        """Expected ratio set for any pattern kind (empty for NO_PATTERN)."""
        template = self._by_kind.get(kind)
        if template is not None:
            return template.ratios
        return _STRUCTURAL_EXPECTED.get(kind, ())
