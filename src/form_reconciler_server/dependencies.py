"""FastAPI dependency injection - provides the form store and a reconciliation engine.

The store is loaded once during lifespan and shared read-only.  Each
request gets its own engine (and therefore its own randomness provider),
so concurrent requests share no mutable state.
"""

import random

from fastapi import Request

from form_reconciler.reconciler import ReconciliationEngine
from form_reconciler.store import FormStore
from form_reconciler.synthesis import ValueSynthesizer


def get_store(request: Request) -> FormStore:
    """Return the FormStore singleton from ``app.state``."""
    return request.app.state.store


def get_engine(request: Request) -> ReconciliationEngine:
    """Build a per-request engine seeded from settings (if a seed is set)."""
    seed = request.app.state.settings.placeholder_seed
    return ReconciliationEngine(ValueSynthesizer(rng=random.Random(seed)))
