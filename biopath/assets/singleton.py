from __future__ import annotations

from biopath.assets.registry import ReferenceData, load_reference_data


_REFERENCE: ReferenceData | None = None


def init_reference_data(data: ReferenceData | None = None) -> ReferenceData:
    """Load the catalog once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _REFERENCE
    if _REFERENCE is None:
        _REFERENCE = data if data is not None else load_reference_data()
    return _REFERENCE


def reset_reference_data_for_tests() -> None:
    global _REFERENCE
    _REFERENCE = None


def get_reference_data() -> ReferenceData:
    return init_reference_data()
