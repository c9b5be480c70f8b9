"""Static technology prerequisite graph.

The tree only answers "what is this node"; whether a player has researched a
technology, or may research it, is tracked outside the domain core.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .enums import TechnologyType
from .models import Technology

T = TechnologyType


def _node(
    tech_type: TechnologyType,
    name: str,
    description: str,
    cost: int,
    prerequisites: Iterable[TechnologyType] = (),
    unlock_effects: Iterable[str] = (),
) -> Technology:
    return Technology(
        tech_type=tech_type,
        name=name,
        description=description,
        cost=cost,
        prerequisites=tuple(prerequisites),
        unlock_effects=tuple(unlock_effects),
    )


_TECHNOLOGIES: tuple[Technology, ...] = (
    # Tier 1: no prerequisites
    _node(
        T.AGRICULTURE,
        "Agriculture",
        "Improves food production for the population",
        100,
        unlock_effects=("Food production +20%", "Allows building farms"),
    ),
    _node(
        T.MINING,
        "Mining",
        "Improves extraction of stone and other minerals",
        100,
        unlock_effects=("Stone extraction +20%", "Allows building mines"),
    ),
    _node(
        T.FORESTRY,
        "Forestry",
        "Improves timber harvesting",
        100,
        unlock_effects=("Wood production +20%", "Allows building lumber mills"),
    ),
    _node(
        T.BASIC_CONSTRUCTION,
        "Basic Construction",
        "Fundamental principles of raising buildings",
        100,
        unlock_effects=("Allows building basic structures", "Construction cost -10%"),
    ),
    _node(
        T.BASIC_MILITARY,
        "Basic Military",
        "Drills and organisation of a standing guard",
        120,
        unlock_effects=("Allows building barracks",),
    ),
    _node(
        T.EDUCATION,
        "Education",
        "Schools for the children of the city",
        120,
        unlock_effects=("Allows building laboratories", "Scholar growth +10%"),
    ),
    # Tier 2
    _node(
        T.TRADE,
        "Trade",
        "Develops trade relations with other cities",
        200,
        (T.AGRICULTURE,),
        ("Allows building markets", "Allows establishing trade routes"),
    ),
    _node(
        T.ADVANCED_CONSTRUCTION,
        "Advanced Construction",
        "Refined building methods",
        200,
        (T.BASIC_CONSTRUCTION, T.MINING),
        ("Allows building advanced structures", "Construction cost -15% more"),
    ),
    _node(
        T.STONE_WORKS,
        "Stone Works",
        "Cutting and dressing stone at scale",
        200,
        (T.MINING, T.BASIC_CONSTRUCTION),
        ("Stone extraction +15%", "Allows building walls"),
    ),
    _node(
        T.CULTURE,
        "Culture",
        "Arts, festivals and shared traditions",
        200,
        (T.EDUCATION,),
        ("Allows building temples", "Culture +10%"),
    ),
    _node(
        T.ADMINISTRATION,
        "Administration",
        "Clerks and records to run a growing city",
        250,
        (T.EDUCATION, T.BASIC_CONSTRUCTION),
        ("Building limit +2",),
    ),
    # Tier 3
    _node(
        T.BANKING,
        "Banking",
        "Credit and coinage for long distance trade",
        300,
        (T.TRADE, T.ADMINISTRATION),
        ("Gold income +15%", "Trade route prices locked for longer"),
    ),
    _node(
        T.ADVANCED_MILITARY,
        "Advanced Military",
        "Professional officers and iron weapons",
        300,
        (T.BASIC_MILITARY, T.MINING),
        ("Barracks defense +50%",),
    ),
    _node(
        T.FORTIFICATION,
        "Fortification",
        "Curtain walls, towers and gatehouses",
        300,
        (T.STONE_WORKS, T.BASIC_MILITARY),
        ("Wall defense +50%",),
    ),
)

del T


class TechnologyTree:
    """Read-only lookup of technology definitions by type."""

    def __init__(self, technologies: Iterable[Technology] = _TECHNOLOGIES) -> None:
        self._technologies: Mapping[TechnologyType, Technology] = MappingProxyType(
            {tech.tech_type: tech for tech in technologies}
        )

    def get(self, tech_type: TechnologyType) -> Technology | None:
        return self._technologies.get(tech_type)

    def get_all(self) -> Mapping[TechnologyType, Technology]:
        return self._technologies

    def __len__(self) -> int:
        return len(self._technologies)


DEFAULT_TREE = TechnologyTree()
