# -*- coding: utf-8 -*-
"""NutriScale: live kitchen-scale dashboard with photo-based nutrition facts."""

__version__ = "1.0.0"
