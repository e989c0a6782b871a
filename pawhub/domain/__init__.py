# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the PawHub platform.

Role vocabulary, allow-set configuration and the authorization gate. Apart
from the actor lookup in ``authorization.authorize``, these functions have no
side effects.
"""
