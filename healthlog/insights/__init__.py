# -*- coding: utf-8 -*-
"""Insights domain: historical window, analyzers, engine and saved read state."""
