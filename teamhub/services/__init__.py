# -*- coding: utf-8 -*-
"""Location: ./teamhub/services/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
"""
