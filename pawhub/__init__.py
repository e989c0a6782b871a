# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
PawHub API: role and membership authorization for animal-shelter projects.
"""

__version__ = "1.0.0"
