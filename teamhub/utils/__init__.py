# -*- coding: utf-8 -*-
"""Location: ./teamhub/utils/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
"""
