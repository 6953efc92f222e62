# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Access control for wsfn sites.

This package provides:
- Password key derivation (argon2id, pbkdf2, deprecated md5/sha512)
- The credential store loaded from access.toml / access.json
- The protected route table
- The Basic-Auth gate middleware
"""
