"""Slide deck presentation helpers: slide sets, modules, navigation and export."""

from .assets import DEFAULT_ASSET_TABLE, AssetResolver, AssetTable, legacy_id
from .cli import run_cli
from .errors import CatalogValidationError
from .models import ActiveSlide, ChartPoint, Module, NavigationState, RawSlideRecord
from .modules import current_module, derive_modules, module_color
from .navigation import NavigationController
from .session import PresentationSession
from .slide_set import SlideSetBuilder, build_active_sequence
from .validation import validate_asset_table, validate_catalog, validate_catalog_file

__all__ = [
    "ActiveSlide",
    "AssetResolver",
    "AssetTable",
    "CatalogValidationError",
    "ChartPoint",
    "DEFAULT_ASSET_TABLE",
    "Module",
    "NavigationController",
    "NavigationState",
    "PresentationSession",
    "RawSlideRecord",
    "SlideSetBuilder",
    "build_active_sequence",
    "current_module",
    "derive_modules",
    "legacy_id",
    "module_color",
    "run_cli",
    "validate_asset_table",
    "validate_catalog",
    "validate_catalog_file",
]
