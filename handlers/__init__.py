#/handlers/__init__.py
"""Регистрация всех handlers и роутеров"""

from . import (
    start,
    couple,
    swipe,
    matches,
    plan,
    proposals,
)

__all__ = [
    "start",
    "couple",
    "swipe",
    "matches",
    "plan",
    "proposals",
]
