import random

import pytest

from form_reconciler.reconciler import ReconciliationEngine
from form_reconciler.synthesis import ValueSynthesizer

from helpers.builders import FIXED_NOW, FirstChoiceRandom


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def synthesizer(fixed_clock):
    """Synthesizer with a seeded RNG and a pinned clock."""
    return ValueSynthesizer(rng=random.Random(1234), clock=fixed_clock)


@pytest.fixture
def first_choice_synthesizer(fixed_clock):
    """Synthesizer whose placeholders are fully predictable."""
    return ValueSynthesizer(rng=FirstChoiceRandom(), clock=fixed_clock)


@pytest.fixture
def engine(synthesizer):
    return ReconciliationEngine(synthesizer)
