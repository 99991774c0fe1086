# -*- coding: utf-8 -*-
"""Dashboard view models and snapshot endpoints."""
