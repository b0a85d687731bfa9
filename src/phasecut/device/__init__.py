"""Compute device selection."""

from phasecut.device.manager import DeviceManager, DeviceInfo

__all__ = ["DeviceManager", "DeviceInfo"]
