"""
Static intent fallback

Canned answers used when there is no FAQ match and the generative backend is
unavailable. Rules are checked top to bottom against the lowercased message
and the first one whose keywords appear (as plain substrings) wins, so the
order below is part of the behavior: "slc" + "food" is answered by the
general food rule, and "ion" also fires inside words like "question".
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple


def _any(*keywords: str) -> Callable[[str], bool]:
    return lambda text: any(k in text for k in keywords)


def _all_of(first: Callable[[str], bool], second: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: first(text) and second(text)


@dataclass(frozen=True)
class IntentRule:
    name: str
    matches: Callable[[str], bool]
    response: str


FOOD_RESPONSE = (
    "🍕 Campus is full of food options! Check out:\n\n"
    "• **SLC**: Tim Hortons, Pizza Pizza, Subway, Booster Juice\n"
    "• **DC & MC**: Tim Hortons locations\n"
    "• **South Campus Hall**: Food court with diverse options\n"
    "• **Dining Halls**: Village 1, REV for all-you-can-eat\n"
    "• **WUSA Food Support**: Free hampers at SLC Turnkey\n\n"
    "Use your WatCard everywhere! Perfect for off-campus students."
)

COFFEE_RESPONSE = (
    "☕ Tim Hortons locations on campus:\n\n"
    "• **SLC** - Busiest, open late\n"
    "• **DC** (Davis Centre) - Between classes\n"
    "• **MC** (Math & Computer) - Quick runs\n"
    "• **South Campus Hall** - Near food court\n\n"
    "All accept WatCard! Great for coffee, breakfast, and study snacks."
)

SLC_FOOD_RESPONSE = (
    "🎉 SLC Food Court has everything:\n\n"
    "• Tim Hortons - Coffee & breakfast\n"
    "• Pizza Pizza - Slices & whole pizzas\n"
    "• Subway - Subs & salads\n"
    "• Booster Juice - Smoothies\n"
    "• Teriyaki Experience - Asian bowls\n\n"
    "Open late, WatCard accepted everywhere!"
)

DEFAULT_RESPONSE = (
    "Happy to help! Ask me about housing, food, transportation, "
    "campus facilities, or wellness resources."
)

INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        "study",
        _any("study", "library"),
        "Try Davis Centre Library, Dana Porter Library, and SLC study areas.",
    ),
    IntentRule(
        "events",
        _any("event"),
        "See WUSA Events and the UWaterloo events calendar for what's on this week.",
    ),
    IntentRule(
        "housing",
        _any("housing", "rent"),
        "Check the Off-Campus Housing Office site for listings, leases, and tenant rights.",
    ),
    IntentRule("food", _any("food", "meal", "eat"), FOOD_RESPONSE),
    IntentRule("coffee", _any("tim", "tim hortons", "coffee"), COFFEE_RESPONSE),
    IntentRule("slc_food", _all_of(_any("slc"), _any("food", "eat")), SLC_FOOD_RESPONSE),
    IntentRule(
        "transport",
        _any("transport", "bus", "ion", "grt"),
        "Your WatCard is your U-Pass for GRT/ION. Tap on entry. "
        "Might take 2–4 business days to activate if new.",
    ),
)


def match_intent(message: str) -> Optional[IntentRule]:
    """Return the first rule matching the message, or None."""
    text = (message or "").lower()
    for rule in INTENT_RULES:
        if rule.matches(text):
            return rule
    return None


def get_intelligent_response(message: str) -> str:
    """Canned answer for the message; the generic prompt if no rule fires."""
    rule = match_intent(message)
    return rule.response if rule else DEFAULT_RESPONSE
