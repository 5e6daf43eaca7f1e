"""Catalog loader — reads catalog/*.json files, parses and validates them."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from zooplanner.config import GRID_RULES, MAX_CATALOG_ENTRIES, GridRules

from .models import AnimalRequirement, CatalogEntry, CatalogResult, ValidationError


log = logging.getLogger(__name__)

CATALOG_DIR = Path(__file__).resolve().parent.parent.parent / "catalog"

BUILDINGS_FILE = "buildings.json"
DECORATIONS_FILE = "decorations.json"
ANIMALS_FILE = "animals.json"


def item_type_id(name: str) -> str:
    """Derive a building/decoration type id from its display name."""
    return re.sub(r"\s+", "", name.lower())


def occupant_type_id(name: str) -> str:
    """Derive an occupant id from the animal's display name."""
    return name.lower()


# ── Validation ─────────────────────────────────────────────────────

def _validate_entry(entry: CatalogEntry, rules: GridRules) -> list[ValidationError]:
    errs: list[ValidationError] = []
    tid = entry.type_id
    if entry.width <= 0:
        errs.append(ValidationError(tid, "width", "Must be > 0"))
    if entry.height <= 0:
        errs.append(ValidationError(tid, "height", "Must be > 0"))
    if entry.width > rules.grid_size or entry.height > rules.grid_size:
        errs.append(ValidationError(
            tid, "size",
            f"{entry.width}×{entry.height} does not fit on a "
            f"{rules.grid_size}×{rules.grid_size} grid"))
    return errs


def _validate_animal(animal: AnimalRequirement) -> list[ValidationError]:
    errs: list[ValidationError] = []
    if animal.min_area <= 0:
        errs.append(ValidationError(animal.occupant_id, "minArea", "Must be > 0"))
    if animal.min_perimeter <= 0:
        errs.append(ValidationError(animal.occupant_id, "minPerimeter", "Must be > 0"))
    return errs


def _check_duplicates(ids: list[str], source: str) -> list[ValidationError]:
    errs: list[ValidationError] = []
    counts: dict[str, int] = {}
    for tid in ids:
        counts[tid] = counts.get(tid, 0) + 1
    for tid, count in counts.items():
        if count > 1:
            errs.append(ValidationError(
                tid, "id", f"Duplicate id in {source} (appears {count} times)"))
    return errs


def _check_length(count: int, source: str) -> list[ValidationError]:
    if count <= MAX_CATALOG_ENTRIES:
        return []
    return [ValidationError(
        source, "count",
        f"{count} entries; share links can only index the first "
        f"{MAX_CATALOG_ENTRIES}")]


# ── Parsing ────────────────────────────────────────────────────────

def _parse_entry(data: dict) -> CatalogEntry:
    return CatalogEntry(
        type_id=item_type_id(data["name"]),
        name=data["name"],
        width=int(data["width"]),
        height=int(data["height"]),
        emoji=data.get("emoji", ""),
        color=data.get("color", ""),
    )


def _parse_animal(data: dict) -> AnimalRequirement:
    return AnimalRequirement(
        occupant_id=occupant_type_id(data["name"]),
        name=data["name"],
        min_area=int(data["minArea"]),
        min_perimeter=int(data["minPerimeter"]),
        emoji=data.get("emoji", ""),
    )


def _read_list(path: Path, errors: list[ValidationError]) -> list[dict]:
    """Read one JSON array file, recording problems instead of raising."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        errors.append(ValidationError(path.stem, "file", f"Missing {path}"))
        return []
    except json.JSONDecodeError as exc:
        errors.append(ValidationError(path.stem, "json", f"Parse error: {exc}"))
        return []
    except OSError as exc:
        errors.append(ValidationError(path.stem, "file", f"Read error: {exc}"))
        return []
    if not isinstance(raw, list):
        errors.append(ValidationError(path.stem, "json", "Expected a JSON array"))
        return []
    return raw


def _parse_all(rows: list[dict], parse, source: str,
               errors: list[ValidationError]) -> list:
    parsed = []
    for i, row in enumerate(rows):
        try:
            parsed.append(parse(row))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            name = row.get("name", f"{source}[{i}]") if isinstance(row, dict) else f"{source}[{i}]"
            errors.append(ValidationError(str(name), "parse", f"Missing/invalid field: {exc}"))
    return parsed


# ── Public API ─────────────────────────────────────────────────────

def load_catalog(
    catalog_dir: Path | None = None,
    rules: GridRules = GRID_RULES,
) -> CatalogResult:
    """Load buildings, decorations and animals from *catalog_dir*.

    Returns a CatalogResult with the three ordered lists and any
    validation errors.  Rows that fail to parse are skipped (error
    recorded).  Rows that parse but have validation issues are still
    included so their catalog indices stay stable.
    """
    d = catalog_dir or CATALOG_DIR
    errors: list[ValidationError] = []

    buildings = _parse_all(
        _read_list(d / BUILDINGS_FILE, errors), _parse_entry, "buildings", errors)
    decorations = _parse_all(
        _read_list(d / DECORATIONS_FILE, errors), _parse_entry, "decorations", errors)
    animals = _parse_all(
        _read_list(d / ANIMALS_FILE, errors), _parse_animal, "animals", errors)

    for entry in buildings + decorations:
        errors.extend(_validate_entry(entry, rules))
    for animal in animals:
        errors.extend(_validate_animal(animal))

    errors.extend(_check_duplicates([b.type_id for b in buildings], "buildings"))
    errors.extend(_check_duplicates([x.type_id for x in decorations], "decorations"))
    errors.extend(_check_duplicates([a.occupant_id for a in animals], "animals"))

    errors.extend(_check_length(len(buildings), "buildings"))
    errors.extend(_check_length(len(decorations), "decorations"))
    errors.extend(_check_length(len(animals), "animals"))

    if errors:
        log.warning("Catalog in %s loaded with %d problem(s)", d, len(errors))
    log.info("Loaded %d buildings, %d decorations, %d animals from %s",
             len(buildings), len(decorations), len(animals), d)

    return CatalogResult(
        buildings=buildings,
        decorations=decorations,
        animals=animals,
        errors=errors,
    )
