"""Aura — LLM prompt builders."""
