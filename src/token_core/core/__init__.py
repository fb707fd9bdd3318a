# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""Core infrastructure components for TokenCore."""

from .config import Settings, get_settings
from .database import Database, DatastoreError
from .result_types import Err, Ok, Result

__all__ = ["Settings", "get_settings", "Database", "DatastoreError", "Ok", "Err", "Result"]
