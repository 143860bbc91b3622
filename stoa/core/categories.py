"""Display categories — pure mapping from free-text labels.

Habit and task records carry their category as whatever string the AI coach
or the user wrote ("fitness", "Mindfulness", "career"...). Screens only ever
show one of seven fixed categories, each with its own icon, color and emoji.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from enum import Enum


class DisplayCategory(Enum):
    PHYSICAL = "Physical"
    MINDFULNESS = "Mindfulness"
    SPIRITUAL = "Spiritual"
    SOCIAL = "Social"
    PRODUCTIVITY = "Productivity"
    LEARNING = "Learning"
    PERSONAL_GROWTH = "Personal Growth"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def icon(self) -> str:
        return _STYLE[self][0]

    @property
    def color(self) -> str:
        return _STYLE[self][1]

    @property
    def emoji(self) -> str:
        return _STYLE[self][2]


# category → (icon identifier, color token, emoji)
_STYLE: dict[DisplayCategory, tuple[str, str, str]] = {
    DisplayCategory.PHYSICAL:        ("figure.walk",           "green",  "🏃"),
    DisplayCategory.MINDFULNESS:     ("heart.fill",            "pink",   "🧘"),
    DisplayCategory.SPIRITUAL:       ("leaf.fill",             "purple", "🍃"),
    DisplayCategory.SOCIAL:          ("person.2.fill",         "orange", "🤝"),
    DisplayCategory.PRODUCTIVITY:    ("checkmark.circle.fill", "red",    "✅"),
    DisplayCategory.LEARNING:        ("book.fill",             "indigo", "📚"),
    DisplayCategory.PERSONAL_GROWTH: ("star.fill",             "yellow", "⭐"),
}

# Order matters: first match wins.
_SYNONYMS: tuple[tuple[frozenset[str], DisplayCategory], ...] = (
    (frozenset({"physical", "fitness", "health"}), DisplayCategory.PHYSICAL),
    (frozenset({"mental", "mindfulness", "meditation"}), DisplayCategory.MINDFULNESS),
    (frozenset({"spiritual", "spirituality"}), DisplayCategory.SPIRITUAL),
    (frozenset({"social", "relationships"}), DisplayCategory.SOCIAL),
    (frozenset({"productivity", "work", "career"}), DisplayCategory.PRODUCTIVITY),
    (frozenset({"learning", "education", "study"}), DisplayCategory.LEARNING),
)


def classify(label: str | None) -> DisplayCategory:
    """Return the display category for a free-text label.

    Matching is case-insensitive. Missing, empty and unrecognized labels
    all fall back to Personal Growth.
    """
    if not label:
        return DisplayCategory.PERSONAL_GROWTH

    normalized = label.strip().lower()
    for synonyms, category in _SYNONYMS:
        if normalized in synonyms:
            return category
    return DisplayCategory.PERSONAL_GROWTH
