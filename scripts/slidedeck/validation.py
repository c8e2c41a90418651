"""Validation for the slide catalog and asset table JSON inputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .assets import DEFAULT_ASSET_TABLE, AssetTable
from .errors import CatalogValidationError
from .models import LAYOUT_TYPES, ChartPoint, RawSlideRecord, SlideCatalog


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _ensure_list_of_str(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_chart_data(chart_data: Any, prefix: str, issues: list[str]) -> Optional[tuple[ChartPoint, ...]]:
    if chart_data is None:
        return None
    if not isinstance(chart_data, list):
        issues.append(f"{prefix}.chartData must be a list when provided")
        return None

    points: list[ChartPoint] = []
    for p_idx, item in enumerate(chart_data):
        pp = f"{prefix}.chartData[{p_idx}]"
        if not isinstance(item, dict):
            issues.append(f"{pp} must be an object with year + cost")
            continue
        year = item.get("year")
        if not (_is_non_empty_str(year) or _is_int(year)):
            issues.append(f"{pp}.year is required and must be a string or integer")
            continue
        cost = item.get("cost")
        if not _is_number(cost):
            issues.append(f"{pp}.cost is required and must be a number")
            continue
        label = item.get("label", "")
        if not isinstance(label, str):
            issues.append(f"{pp}.label must be a string when provided")
            continue
        points.append(ChartPoint(year=str(year), cost=float(cost), label=label))
    return tuple(points)


def _check_record(slide: Dict[str, Any], idx: int, issues: list[str]) -> Optional[RawSlideRecord]:
    prefix = f"slides[{idx}]"
    before = len(issues)

    record_id = slide.get("id")
    if not _is_int(record_id) or record_id <= 0:
        issues.append(f"{prefix}.id is required and must be a positive integer")

    if not _is_non_empty_str(slide.get("module")):
        issues.append(f"{prefix}.module is required and must be a non-empty string")

    if not isinstance(slide.get("title"), str):
        issues.append(f"{prefix}.title is required and must be a string")

    layout = slide.get("layoutType")
    if not isinstance(layout, str) or not layout.strip():
        issues.append(f"{prefix}.layoutType must be a non-empty string")
    elif layout not in LAYOUT_TYPES:
        allowed = ", ".join(LAYOUT_TYPES)
        issues.append(f"{prefix}.layoutType '{layout}' is unsupported (supported: {allowed})")

    content = slide.get("content", [])
    if not _ensure_list_of_str(content):
        issues.append(f"{prefix}.content must be a list of strings when provided")

    data_support = slide.get("dataSupport", "")
    if not isinstance(data_support, str):
        issues.append(f"{prefix}.dataSupport must be a string when provided")

    for field in ("image", "video"):
        if field in slide and slide.get(field) is not None and not isinstance(slide.get(field), str):
            issues.append(f"{prefix}.{field} must be a string when provided")

    chart_data = _check_chart_data(slide.get("chartData"), prefix, issues)

    if len(issues) > before:
        return None

    return RawSlideRecord(
        id=record_id,
        module=slide["module"],
        title=slide["title"],
        layout_type=layout,
        content=tuple(content),
        data_support=data_support,
        image=slide.get("image") or None,
        video=slide.get("video") or None,
        chart_data=chart_data,
    )


def _unwrap(data: Any) -> Tuple[Any, str]:
    if isinstance(data, list):
        return data, ""
    if not isinstance(data, dict):
        raise CatalogValidationError(["Root JSON value must be a list or an object"])

    container = data.get("presentation", data)
    if not isinstance(container, dict):
        raise CatalogValidationError(["'presentation' must be an object"])

    title = container.get("title", "")
    if not isinstance(title, str):
        raise CatalogValidationError(["presentation.title must be a string when provided"])
    return container.get("slides"), title


def validate_catalog(data: Any) -> SlideCatalog:
    """Validate a catalog payload and return its records in authored order."""
    slides, title = _unwrap(data)
    if not isinstance(slides, list):
        raise CatalogValidationError(["slides is required and must be a list"])

    issues: list[str] = []
    records: List[RawSlideRecord] = []
    first_seen: Dict[int, int] = {}
    for idx, slide in enumerate(slides):
        if not isinstance(slide, dict):
            issues.append(f"slides[{idx}] must be an object")
            continue
        record = _check_record(slide, idx, issues)
        if record is None:
            continue
        if record.id in first_seen:
            issues.append(f"slides[{idx}].id {record.id} duplicates slides[{first_seen[record.id]}]")
            continue
        first_seen[record.id] = idx
        records.append(record)

    if issues:
        raise CatalogValidationError(issues)

    return SlideCatalog(records=records, title=title)


def _load_json(path: Path, subject: str) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CatalogValidationError([f"{subject} file not found: {path}"], subject=subject) from exc

    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        issue = f"Invalid JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}"
        raise CatalogValidationError([issue], subject=subject, source=path) from exc


def validate_catalog_file(catalog_path: Path) -> SlideCatalog:
    """Load and validate a JSON catalog file."""
    catalog_path = Path(catalog_path)
    try:
        return validate_catalog(_load_json(catalog_path, "Catalog"))
    except CatalogValidationError as exc:
        if exc.source is not None:
            raise
        raise exc.for_source(catalog_path) from exc


def _int_keyed(mapping: Any, name: str, issues: list[str]) -> Dict[int, Any]:
    if not isinstance(mapping, dict):
        issues.append(f"{name} must be an object keyed by slide id")
        return {}
    out: Dict[int, Any] = {}
    for key, value in mapping.items():
        try:
            out[int(key)] = value
        except (TypeError, ValueError):
            issues.append(f"{name} key '{key}' must be an integer")
    return out


def validate_asset_table(data: Any) -> AssetTable:
    """Validate an asset table payload; omitted sections keep their defaults."""
    if not isinstance(data, dict):
        raise CatalogValidationError(["Asset table must be an object"], subject="Asset table")

    default = DEFAULT_ASSET_TABLE
    issues: list[str] = []

    cover = data.get("cover", default.cover)
    if not _is_non_empty_str(cover):
        issues.append("cover must be a non-empty string")

    pages = data.get("documentPages", list(default.document_pages))
    if not _ensure_list_of_str(pages):
        issues.append("documentPages must be a list of strings")
        pages = []

    first_id = data.get("documentPageFirstId", default.document_page_first_id)
    if not _is_int(first_id) or first_id <= 0:
        issues.append("documentPageFirstId must be a positive integer")

    legacy = default.legacy
    if "legacy" in data:
        legacy = _int_keyed(data.get("legacy"), "legacy", issues)
        for key, value in legacy.items():
            if not _is_non_empty_str(value):
                issues.append(f"legacy[{key}] must be a non-empty string")

    pairs: Dict[int, Tuple[str, str]] = dict(default.pairs)
    if "pairs" in data:
        pairs = {}
        for key, value in _int_keyed(data.get("pairs"), "pairs", issues).items():
            if not _ensure_list_of_str(value) or len(value) != 2:
                issues.append(f"pairs[{key}] must be a list of exactly two strings")
                continue
            pairs[key] = (value[0], value[1])

    if issues:
        raise CatalogValidationError(issues, subject="Asset table")

    return AssetTable(
        cover=cover,
        document_pages=tuple(pages),
        document_page_first_id=first_id,
        legacy=dict(legacy),
        pairs=pairs,
    )


def validate_asset_table_file(path: Path) -> AssetTable:
    """Load and validate a JSON asset table file."""
    path = Path(path)
    try:
        return validate_asset_table(_load_json(path, "Asset table"))
    except CatalogValidationError as exc:
        if exc.source is not None:
            raise
        raise exc.for_source(path) from exc
