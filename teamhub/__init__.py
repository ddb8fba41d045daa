# -*- coding: utf-8 -*-
"""Location: ./teamhub/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

teamhub - team formation service.

Users create, browse, join and leave capacity-limited teams with
public, private or password-protected visibility.
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
