# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""API version 1 routes."""

from fastapi import APIRouter

from .oauth2 import router as oauth2_router

router = APIRouter(prefix="/api/v1")
router.include_router(oauth2_router)

__all__ = ["router"]
