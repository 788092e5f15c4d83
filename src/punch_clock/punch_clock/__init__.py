"""Punch Clock package.

This package is organized by feature modules (punches, timesheet, organizations, ...)
with a thin Flask controller layer and service/repository layers.
"""
