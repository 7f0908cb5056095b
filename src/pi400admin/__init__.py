"""pi400admin -- Local admin panel for a Raspberry Pi 400 appliance.

This package implements a small HTTP API that proxies a fixed whitelist
of privileged operating-system actions (systemd units, NAT, USB gadget
setup, logs) and an operator console that polls and drives it. The API
binds to loopback only; the allow-list is the sole authorization gate.
"""

__version__ = "0.1.0"
