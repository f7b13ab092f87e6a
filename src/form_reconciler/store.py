"""FormStore - loads form definitions from ``forms/`` into typed models.

Form definitions are loaded once at startup and treated as immutable, so a
single store can be shared by concurrent reconciliation calls.

Two file formats are accepted:

  - ``*.yaml`` / ``*.yml`` - native shape (``id``, ``title``, ``items``
    of FieldDescriptor dicts)
  - ``*.json`` - a FHIR Questionnaire resource

Usage::

    store = FormStore()          # defaults to forms/ relative to repo root
    store.load()

    form = store.get("imaging-order")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from form_reconciler.fhir import questionnaire_from_fhir
from form_reconciler.models.form import FormDefinition

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# FormStore
# ---------------------------------------------------------------------------

class FormStore:
    """Loads every form definition under a directory and provides lookup by id."""

    def __init__(self, forms_dir: str | Path | None = None) -> None:
        if forms_dir is None:
            forms_dir = find_repo_root() / "forms"
        self._base = Path(forms_dir)
        self._forms: dict[str, FormDefinition] = {}

    @property
    def forms_dir(self) -> Path:
        return self._base

    def load(self) -> None:
        """Parse all form files.  Raises ``FileNotFoundError`` for a missing directory.

        A file that fails validation raises ``ValueError`` naming the file;
        duplicate form ids raise ``ValueError`` as well.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing forms directory: {self._base}")

        for path in sorted(self._base.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                form = self._parse(path, self._load_native)
            elif path.suffix == ".json":
                form = self._parse(path, self._load_fhir)
            else:
                continue
            if form.id in self._forms:
                raise ValueError(f"Duplicate form id {form.id!r} in {path.name}")
            self._forms[form.id] = form

        logger.info("FormStore loaded %d forms from %s", len(self._forms), self._base)

    @staticmethod
    def _parse(path: Path, loader) -> FormDefinition:
        try:
            return loader(path)
        except ValidationError as exc:
            raise ValueError(f"Invalid form definition in {path.name}: {exc}") from exc

    @staticmethod
    def _load_native(path: Path) -> FormDefinition:
        return FormDefinition.model_validate(load_yaml(path))

    @staticmethod
    def _load_fhir(path: Path) -> FormDefinition:
        with path.open("r", encoding="utf-8") as f:
            return questionnaire_from_fhir(json.load(f))

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get(self, form_id: str) -> FormDefinition:
        """Return the form with *form_id*.

        Raises:
            KeyError: if no such form was loaded.
        """
        try:
            return self._forms[form_id]
        except KeyError:
            raise KeyError(f"Form {form_id!r} not found") from None

    def list_forms(self) -> list[FormDefinition]:
        """All loaded forms, sorted by id."""
        return [self._forms[k] for k in sorted(self._forms)]

    def __contains__(self, form_id: object) -> bool:
        return form_id in self._forms

    def __len__(self) -> int:
        return len(self._forms)
