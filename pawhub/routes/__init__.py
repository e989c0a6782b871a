# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HTTP routes (flask-openapi3 blueprints) for the PawHub API.
"""
