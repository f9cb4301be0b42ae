"""Utility helpers for Transkit."""
