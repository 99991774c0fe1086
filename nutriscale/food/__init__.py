# -*- coding: utf-8 -*-
"""Food photo analysis.

A photo goes to the vision model, the reply is validated into a
`NutritionRecord`, stored at `food` and relayed to the messaging bot.
"""
