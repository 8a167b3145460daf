# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""Core utilities: errors, logging, retry, file helpers."""
