# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tracing and structured logging setup.
"""
