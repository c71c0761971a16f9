# -*- coding: utf-8 -*-
"""Logs domain: category descriptors, persistence backends and the log store."""
