#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Statute repair pass."""

from .pipeline import StatuteRepairer

__all__ = ["StatuteRepairer"]
