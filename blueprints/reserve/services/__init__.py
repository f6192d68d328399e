"""Reservation wizard services package."""
