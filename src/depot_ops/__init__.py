"""Depot Ops package.

This package is organized by feature modules (parcels, escalation, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""
