"""Privileged-action HTTP backend for the Pi 400 admin panel.

This package runs on the Pi itself. It exposes a loopback-only REST API
whose every state-changing or information-disclosing route is gated by
an allow-list or an enumerated sub-action before any external program
is launched.
"""
