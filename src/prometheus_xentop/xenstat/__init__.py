"""Client for the Xen statistics interface and the snapshots it produces."""

from .backend import StatsBackend
from .client import XenStats
from .errors import CannotConnect, DeviceReadFailure, Disconnected, XenStatError
from .models import (
    BlockDeviceSnapshot,
    DomainSnapshot,
    DomainState,
    NetworkDeviceSnapshot,
)

__all__ = [
    "BlockDeviceSnapshot",
    "CannotConnect",
    "DeviceReadFailure",
    "Disconnected",
    "DomainSnapshot",
    "DomainState",
    "NetworkDeviceSnapshot",
    "StatsBackend",
    "XenStatError",
    "XenStats",
]
