"""
Five-element cycle: year elements and pairwise relationships.

Each year belongs to one element, two consecutive years per element,
advancing along the generative cycle from the Wood year 1984:

    1984/85 Wood   1986/87 Fire   1988/89 Earth   1990/91 Metal   1992/93 Water

Generative (each feeds the next):  Wood -> Fire -> Earth -> Metal -> Water -> Wood
Destructive (each overcomes):      Wood -> Earth -> Water -> Fire -> Metal -> Wood

Any ordered pair of the five elements is exactly one of: the same element,
a generative step in either direction, or a destructive step in either
direction.
"""

from __future__ import annotations

from enum import StrEnum


class Element(StrEnum):
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


GENERATIVE_ORDER: tuple[Element, ...] = (
    Element.WOOD,
    Element.FIRE,
    Element.EARTH,
    Element.METAL,
    Element.WATER,
)

# source -> the element it feeds
GENERATES: dict[Element, Element] = {
    GENERATIVE_ORDER[i]: GENERATIVE_ORDER[(i + 1) % 5] for i in range(5)
}

# source -> the element it overcomes (two steps ahead on the generative cycle)
DESTROYS: dict[Element, Element] = {
    GENERATIVE_ORDER[i]: GENERATIVE_ORDER[(i + 2) % 5] for i in range(5)
}

CYCLE_BASE_YEAR = 1984


class RelationshipClass(StrEnum):
    """How the first element of an ordered pair acts on the second."""

    SAME = "same"
    GENERATES = "generates"
    GENERATED_BY = "generated_by"
    DESTROYS = "destroys"
    DESTROYED_BY = "destroyed_by"
    UNRELATED = "unrelated"


# Score on [-1, +1]; SAME is neutral-favorable
INTERACTION_SCORES: dict[RelationshipClass, float] = {
    RelationshipClass.SAME: 0.5,
    RelationshipClass.GENERATES: 0.8,
    RelationshipClass.GENERATED_BY: 0.6,
    RelationshipClass.DESTROYS: -0.5,
    RelationshipClass.DESTROYED_BY: -0.8,
    RelationshipClass.UNRELATED: 0.0,
}


def element_for_year(year: int) -> Element:
    """Element governing a calendar year (e.g. 1990 -> Metal)."""
    return GENERATIVE_ORDER[((year - CYCLE_BASE_YEAR) // 2) % 5]


def is_generative(a: Element, b: Element) -> bool:
    """True if ``a`` feeds ``b`` or ``b`` feeds ``a``."""
    return GENERATES[a] == b or GENERATES[b] == a


def is_destructive(a: Element, b: Element) -> bool:
    """True if either element overcomes the other."""
    return DESTROYS[a] == b or DESTROYS[b] == a


def relationship(a: Element, b: Element) -> RelationshipClass:
    """Classify the ordered pair ``(a, b)``."""
    if a == b:
        return RelationshipClass.SAME
    if GENERATES[a] == b:
        return RelationshipClass.GENERATES
    if GENERATES[b] == a:
        return RelationshipClass.GENERATED_BY
    if DESTROYS[a] == b:
        return RelationshipClass.DESTROYS
    if DESTROYS[b] == a:
        return RelationshipClass.DESTROYED_BY
    return RelationshipClass.UNRELATED


def interaction_score(a: Element, b: Element) -> float:
    """Favorability of ``a`` meeting ``b`` on [-1, +1]."""
    return INTERACTION_SCORES[relationship(a, b)]
