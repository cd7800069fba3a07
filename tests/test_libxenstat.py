"""Tests for the libxenstat binding that do not need a Xen host."""

import pytest

from prometheus_xentop.xenstat.client import XenStats
from prometheus_xentop.xenstat.errors import CannotConnect
from prometheus_xentop.xenstat.libxenstat import XENSTAT_ALL, LibXenstat, find_library


def test_flags_cover_all_subsystems():
    assert XENSTAT_ALL == 0xF


def test_find_library_prefers_explicit_path():
    assert find_library("/opt/xen/libxenstat.so") == "/opt/xen/libxenstat.so"


def test_missing_library_cannot_connect():
    backend = LibXenstat("/nonexistent/libxenstat.so.0")
    assert backend.init() is None
    with pytest.raises(CannotConnect):
        XenStats.connect(backend)


def test_accessors_require_loaded_library():
    backend = LibXenstat("/nonexistent/libxenstat.so.0")
    with pytest.raises(RuntimeError):
        backend.get_node(object())


def test_counter_prototypes_are_unsigned():
    import ctypes

    from prometheus_xentop.xenstat.libxenstat import _PROTOTYPES

    unsigned = (ctypes.c_uint, ctypes.c_ulonglong)
    for name, (restype, _argtypes) in _PROTOTYPES.items():
        if restype in (None, ctypes.c_void_p, ctypes.c_char_p):
            continue
        assert restype in unsigned, name
