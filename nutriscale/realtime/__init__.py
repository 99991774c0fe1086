# -*- coding: utf-8 -*-
"""
Realtime module

Store subscriptions and the dashboard WebSocket.
"""

from .subscriptions import FoodDataSubscription, ScaleWeightSubscription, Subscription
from .websocket import DashboardManager, dashboard_manager, websocket_endpoint

__all__ = [
    'DashboardManager',
    'FoodDataSubscription',
    'ScaleWeightSubscription',
    'Subscription',
    'dashboard_manager',
    'websocket_endpoint',
]
