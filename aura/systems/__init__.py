"""Aura — Turn pipeline subsystems."""
