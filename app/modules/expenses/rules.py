"""
Expense categorization and per-category spending caps.

Caps follow the company reimbursement policy: breakfast up to R$ 30,00,
lunch, dinner and unspecified meals up to R$ 60,00. Amounts above a cap are
reimbursed at the cap; the original value is kept alongside.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple, Union

FOOD = "Alimentação"
TRANSPORT = "Deslocamento"
LODGING = "Hospedagem"
OTHER = "Outros"

EXPENSE_CATEGORIES = (FOOD, TRANSPORT, LODGING, OTHER)

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("999999")
MAX_DESCRIPTION_LENGTH = 100

BREAKFAST_CAP = Decimal("30.00")
MEAL_CAP = Decimal("60.00")

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    FOOD: [
        "restaurante", "lanchonete", "padaria", "café", "bar",
        "refeição", "almoço", "jantar", "café da manhã",
        "food", "meal", "breakfast", "lunch", "dinner",
    ],
    TRANSPORT: [
        "uber", "taxi", "99", "transporte", "passagem",
        "combustível", "gasolina", "pedágio", "estacionamento",
        "transport", "fuel", "parking", "toll",
    ],
    LODGING: [
        "hotel", "pousada", "hospedagem", "diária",
        "accommodation", "lodging", "stay",
    ],
}

# Meal windows, inclusive on both ends (HH:MM)
MEAL_TIMES = {
    "breakfast": ("00:00", "10:30"),
    "lunch": ("10:30", "15:00"),
    "dinner": ("15:00", "23:59"),
}

_TIME_PATTERN = re.compile(r"\b([01]?[0-9]|2[0-3])[:h.]([0-5][0-9])\b")

# Checked in order; the first matching meal wins
_MEAL_CAPS_FOR_FOOD = [
    ("Café da Manhã", BREAKFAST_CAP, ("café da manhã", "cafe da manha", "breakfast", "café")),
    ("Almoço", MEAL_CAP, ("almoço", "almoco", "lunch", "almocar")),
    ("Jantar", MEAL_CAP, ("jantar", "dinner", "janta")),
]
# Without a food category only explicit meal names trigger a cap
_MEAL_CAPS_UNCATEGORIZED = [
    ("Café da Manhã", BREAKFAST_CAP, ("café da manhã", "cafe da manha")),
    ("Almoço", MEAL_CAP, ("almoço", "almoco")),
    ("Jantar", MEAL_CAP, ("jantar",)),
]


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_time_in_range(value: str, start: str, end: str) -> bool:
    return to_minutes(start) <= to_minutes(value) <= to_minutes(end)


def extract_time(description: Optional[str]) -> Optional[str]:
    """Find a time such as 14:30, 14h30 or 14.30 in a description; returns HH:MM."""
    if not description:
        return None
    match = _TIME_PATTERN.search(description)
    if not match:
        return None
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def categorize(description: Optional[str], time: Optional[str] = None) -> str:
    if not description:
        return OTHER

    lowered = description.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category

    if time:
        padded = time.zfill(5)
        for start, end in MEAL_TIMES.values():
            if is_time_in_range(padded, start, end):
                return FOOD

    return OTHER


def suggest_category(
    description: Optional[str],
    ai_category: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Pick a category from the description, falling back to a model-suggested one."""
    if not description:
        return ai_category or OTHER

    time = extract_time(description) or (now or datetime.now()).strftime("%H:%M")
    automatic = categorize(description, time)
    if not ai_category or automatic != OTHER:
        return automatic
    return ai_category


def categorization_confidence(description: Optional[str], category: Optional[str]) -> int:
    """0-100 score: share of the category's keywords present, plus 20 for a specific category."""
    if not description or not category:
        return 0

    lowered = description.lower()
    keywords = CATEGORY_KEYWORDS.get(category, [])
    matches = sum(1 for keyword in keywords if keyword in lowered)
    keyword_score = (matches / len(keywords)) * 100 if keywords else 0
    bonus = 20 if category != OTHER else 0
    return min(100, round(keyword_score + bonus))


def parse_amount(value: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """Accepts 12.5, "12.50" and "12,50"; returns None for anything unparsable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def apply_category_limit(
    value: Union[str, int, float, Decimal],
    description: Optional[str],
    category: Optional[str] = None,
) -> Tuple[Decimal, Optional[str]]:
    """Cap an amount by meal type. Returns (amount, label of the applied cap or None)."""
    amount = parse_amount(value)
    if amount is None:
        return Decimal("0.00"), None

    lowered = (description or "").lower()
    rules = _MEAL_CAPS_FOR_FOOD if category == FOOD else _MEAL_CAPS_UNCATEGORIZED

    for label, cap, keywords in rules:
        if any(keyword in lowered for keyword in keywords):
            if amount > cap:
                return cap, f"{label} (R$ {cap:.2f})".replace(".", ",")
            return amount, None

    if category == FOOD and amount > MEAL_CAP:
        return MEAL_CAP, f"Alimentação Geral (R$ {MEAL_CAP:.2f})".replace(".", ",")
    return amount, None
