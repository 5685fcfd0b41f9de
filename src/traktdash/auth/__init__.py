# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server side authentication.

This package provides:
- Salted argon2id records in ``salt:hash`` form
- The credential store loaded from config/auth.yml
- Signed session cookies (itsdangerous)
"""
