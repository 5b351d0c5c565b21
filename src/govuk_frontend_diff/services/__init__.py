"""External collaborators of the diff engine.

This package provides the I/O boundaries the engine depends on:
- bundle: Version-keyed download and cache of the reference bundle
- catalog: Component enumeration and include/exclude selection
- candidate: Adapters for the renderer under test
"""

from .bundle import BundleProvider, cache_key, extract_archive, validate_bundle
from .candidate import CallableRenderer, CandidateRenderer, ProcessRenderer, terminate_process
from .catalog import is_selected, list_components, page_template_selected, select_components

__all__ = [
    "BundleProvider",
    "CallableRenderer",
    "CandidateRenderer",
    "ProcessRenderer",
    "cache_key",
    "extract_archive",
    "is_selected",
    "list_components",
    "page_template_selected",
    "select_components",
    "terminate_process",
    "validate_bundle",
]
