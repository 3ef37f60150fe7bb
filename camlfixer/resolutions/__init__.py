#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Resolution repair pass."""

from .pipeline import ResolutionRepairer

__all__ = ["ResolutionRepairer"]
