#!/usr/bin/env python3
"""Run the ReconciliationEngine on a bundled form and print an audit table.

Builds a context from the command line, reconciles an (optionally empty)
partial response against one of the forms under ``forms/``, and prints
every leaf with its final answer and where that answer came from.

Usage::

    # Default run (imaging-order, empty partial, no patient data)
    python scripts/simulate_reconcile.py

    # Real patient data + clinical context
    python scripts/simulate_reconcile.py -f imaging-order \\
        --patient-name "Jane Doe" --urgency stat \\
        --clinical-context "suspected subarachnoid hemorrhage"

    # Seed a partial response from a JSON file (list of ResponseNode dicts)
    python scripts/simulate_reconcile.py -f medication-request --partial partial.json

    # Reproducible placeholders
    python scripts/simulate_reconcile.py --seed 42

    # List available forms
    python scripts/simulate_reconcile.py --list-forms
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path when running from a checkout.
# ---------------------------------------------------------------------------
_REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from form_reconciler.models import (  # noqa: E402
    FieldDescriptor,
    FormDefinition,
    ReconcileContext,
    ResponseNode,
    ValueSource,
)
from form_reconciler.models.response import Coding, find_node  # noqa: E402
from form_reconciler.reconciler import ReconciliationEngine  # noqa: E402
from form_reconciler.store import FormStore  # noqa: E402
from form_reconciler.synthesis import ValueSynthesizer  # noqa: E402
from form_reconciler.validation import check_completeness  # noqa: E402

_DEFAULT_FORM = "imaging-order"

# Row colour per provenance; "existing" marks answers supplied in the partial.
_SOURCE_STYLES = {
    "existing": "bold",
    ValueSource.CONTEXT.value: "green",
    ValueSource.CLINICAL_CONTEXT.value: "cyan",
    ValueSource.SAFE_DEFAULT.value: "blue",
    ValueSource.PLACEHOLDER.value: "yellow",
    ValueSource.TYPE_DEFAULT.value: "dim",
}


def _format_answer(answer) -> str:
    if isinstance(answer, Coding):
        return f"{answer.display} ({answer.code})"
    if answer == "":
        return "[red]<empty>[/]"
    return repr(answer) if isinstance(answer, (bool, int, float)) else str(answer)


def _iter_leaves_with_path(fields: list[FieldDescriptor], prefix: str = ""):
    for field in fields:
        path = f"{prefix}{field.link_id}"
        if field.children:
            yield from _iter_leaves_with_path(field.children, path + "/")
        elif field.is_leaf:
            yield path, field


def print_report(
    console: Console,
    form: FormDefinition,
    response: list[ResponseNode],
    provenance: dict[str, ValueSource],
) -> None:
    """Print one row per leaf: path, kind, answer, source."""
    table = Table(title=f"{form.title} ({form.id})", show_lines=False)
    table.add_column("Field")
    table.add_column("Kind")
    table.add_column("Req", justify="center")
    table.add_column("Answer")
    table.add_column("Source")

    for path, field in _iter_leaves_with_path(form.items):
        node = find_node(response, field.link_id)
        answer = None
        if node is not None:
            answer = node.answer if node.answer is not None else node.raw_answer
        source = provenance[field.link_id].value if field.link_id in provenance else "existing"
        style = _SOURCE_STYLES.get(source, "")
        table.add_row(
            path,
            field.kind.value,
            "*" if field.required else "",
            _format_answer(answer),
            f"[{style}]{source}[/]" if style else source,
        )
    console.print(table)


def list_forms(console: Console, store: FormStore) -> None:
    """Print all bundled forms and exit."""
    console.print("Available forms:")
    console.print()
    for i, form in enumerate(store.list_forms(), 1):
        console.print(f"  {i:2d}. {form.id:<25s} {form.title}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Reconcile a bundled form and print where every answer came from.",
    )
    parser.add_argument("-f", "--form", default=_DEFAULT_FORM, help="Form id (default: imaging-order)")
    parser.add_argument("--list-forms", action="store_true", help="List bundled forms and exit")
    parser.add_argument("--partial", type=Path, help="JSON file with a list of ResponseNode dicts")
    parser.add_argument("--seed", type=int, default=None, help="Seed for placeholder randomness")
    parser.add_argument("--patient-name")
    parser.add_argument("--patient-age", type=int)
    parser.add_argument("--insurance")
    parser.add_argument("--clinical-context")
    parser.add_argument("--urgency", choices=["stat", "urgent", "routine"])
    parser.add_argument("-v", "--verbose", action="store_true", help="Show engine logs")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s [%(name)s] %(message)s",
    )
    console = Console()

    store = FormStore()
    store.load()
    if args.list_forms:
        list_forms(console, store)
        sys.exit(0)

    form = store.get(args.form)
    partial = []
    if args.partial:
        partial = json.loads(args.partial.read_text(encoding="utf-8"))

    context = ReconcileContext(
        patient_name=args.patient_name,
        patient_age=args.patient_age,
        insurance=args.insurance,
        clinical_context=args.clinical_context,
        urgency=args.urgency,
    )
    engine = ReconciliationEngine(ValueSynthesizer(rng=random.Random(args.seed)))
    result = engine.reconcile(form.items, partial, context)

    print_report(console, form, result.response, result.provenance)

    stats = result.statistics
    report = check_completeness(form.items, result.response)
    console.print()
    console.rule("[bold]Fill statistics")
    console.print(f"  Fields:          {stats.total_fields}")
    console.print(f"  Already filled:  {stats.already_filled}")
    console.print(f"  Auto-filled:     {stats.auto_filled}")
    console.print(f"  [green]Real data:[/]       {stats.used_real_data}")
    console.print(f"  [yellow]Generic data:[/]    {stats.used_generic_data}")
    console.print(f"  Complete:        {'Yes' if report.complete else 'No'}")
    for warning in stats.warnings:
        console.print(f"  [yellow]![/] {warning}")


if __name__ == "__main__":
    main()
