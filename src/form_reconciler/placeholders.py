"""PlaceholderGenerator - realistic-looking but non-real demo values.

Used only when the caller's context has no real value for an
identity-shaped field.  All randomness goes through a single
``random.Random`` instance so tests (and reproducible demos) can pass a
seeded generator and assert exact values.

Placeholder values are never marked inside the value itself; callers tell
them apart through the ``placeholder`` provenance recorded by the engine.
"""

from __future__ import annotations

import random
from datetime import date
from typing import Optional

# --- Curated lists ---

FIRST_NAMES = ["Sarah", "Michael", "Jennifer", "David", "Emily", "James", "Lisa", "Robert"]
LAST_NAMES = ["Johnson", "Williams", "Brown", "Davis", "Miller", "Wilson", "Moore", "Taylor"]
EMERGENCY_CONTACTS = ["Jane Smith", "John Doe", "Mary Johnson", "Robert Williams", "Patricia Brown"]
GENDERS = ["male", "female"]
EMAIL_DOMAINS = ["gmail.com", "yahoo.com", "outlook.com", "icloud.com"]

STREET_NUMBERS = [123, 456, 789, 1012, 2345, 3456]
STREETS = ["Oak Street", "Maple Avenue", "Pine Drive", "Cedar Lane", "Elm Court", "Birch Way"]
CITIES = ["Springfield", "Riverside", "Fairview", "Georgetown", "Madison", "Arlington"]
STATES = ["CA", "NY", "TX", "FL", "IL", "PA"]

PROVIDERS = [
    "Dr. Sarah Chen, MD",
    "Dr. Michael Johnson, MD",
    "Dr. Emily Rodriguez, MD",
    "Dr. David Kim, MD",
    "Dr. Jennifer Williams, MD",
    "Dr. Robert Thompson, MD",
]
PHARMACIES = [
    "CVS Pharmacy #5432",
    "Walgreens #8765",
    "Rite Aid Pharmacy",
    "Community Health Pharmacy",
    "MedExpress Pharmacy",
    "HealthPlus Pharmacy",
]
INSURERS = [
    "Blue Cross Blue Shield",
    "United Healthcare",
    "Aetna",
    "Cigna",
    "Humana",
    "Kaiser Permanente",
]

# Adult demo patients are 25-64 years old.
MIN_AGE = 25
AGE_SPAN = 40


class PlaceholderGenerator:
    """Bounded random choice from small curated lists / synthetic formats.

    Args:
        rng: randomness provider; defaults to a fresh unseeded ``random.Random``.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    def _digits(self, n: int) -> str:
        return "".join(str(self._rng.randrange(10)) for _ in range(n))

    # --- People ---

    def person_name(self) -> str:
        return f"{self._rng.choice(FIRST_NAMES)} {self._rng.choice(LAST_NAMES)}"

    def emergency_contact_name(self) -> str:
        return self._rng.choice(EMERGENCY_CONTACTS)

    def provider_name(self) -> str:
        return self._rng.choice(PROVIDERS)

    def age(self) -> int:
        return MIN_AGE + self._rng.randrange(AGE_SPAN)

    def gender(self) -> str:
        return self._rng.choice(GENDERS)

    def date_of_birth(self, today: date, age: Optional[int] = None) -> str:
        """ISO date of birth; uses *age* when known so DOB and age agree."""
        if age is None:
            age = self.age()
        month = self._rng.randint(1, 12)
        day = self._rng.randint(1, 28)
        return date(today.year - age, month, day).isoformat()

    # --- Identifiers ---

    def mrn(self) -> str:
        return f"MRN{self._rng.randint(1000000, 9999999)}"

    def npi(self) -> str:
        """10-digit NPI-style number."""
        return f"12345{self._digits(5)}"

    def dea(self) -> str:
        """DEA-style registration: 2 letters + 7 digits."""
        return f"AB{self._digits(7)}"

    # --- Contact ---

    def phone(self) -> str:
        area = self._rng.randint(200, 998)
        exchange = self._rng.randint(200, 998)
        number = self._rng.randint(1000, 9998)
        return f"({area}) {exchange}-{number}"

    def email(self, name: Optional[str] = None) -> str:
        """Email address; derived from *name* ("Jane Doe" -> jane.doe@...) when given."""
        parts = (name or "").lower().split()
        first = parts[0] if parts else "patient"
        last = parts[1] if len(parts) > 1 else str(self._rng.randrange(999))
        return f"{first}.{last}@{self._rng.choice(EMAIL_DOMAINS)}"

    def address(self) -> str:
        street_no = self._rng.choice(STREET_NUMBERS)
        street = self._rng.choice(STREETS)
        city = self._rng.choice(CITIES)
        state = self._rng.choice(STATES)
        zip_code = self._rng.randint(10000, 99998)
        return f"{street_no} {street}, {city}, {state} {zip_code}"

    # --- Organisations ---

    def pharmacy(self) -> str:
        return self._rng.choice(PHARMACIES)

    def insurance(self) -> str:
        return self._rng.choice(INSURERS)

    # --- Scheduling ---

    def time_slot(self, slots: tuple[str, ...]) -> str:
        return self._rng.choice(slots)
