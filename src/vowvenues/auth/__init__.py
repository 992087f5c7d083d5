# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2id, "<hash>.<salt>" hex strings)
- Signed, time-boxed bearer tokens (itsdangerous)
"""
