# -*- coding: utf-8 -*-
"""
Wizard Flow Application Core Module
"""

from .config import Config, Transitions

__all__ = ["Config", "Transitions"]
