"""WLAN QoS experiment: address-resolution bootstrap and per-class flow statistics."""

__version__ = "0.1.0"
