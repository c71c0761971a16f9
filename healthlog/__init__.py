# -*- coding: utf-8 -*-
"""Healthlog: date-bucketed health logs, rollup stats and insight generation."""

__version__ = "0.1.0"
