# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""OAuth2 scope parsing and comparison."""

import re

from beartype import beartype

from ..models.oauth2 import Scope

_SCOPE_SEPARATORS = re.compile(r"[\s,]+")


@beartype
def parse_scope(raw: str | None) -> Scope:
    """Split a space- or comma-delimited scope string.

    Empty items are dropped and duplicates removed, keeping first-seen order.
    """
    if not raw:
        return ()
    seen: dict[str, None] = {}
    for item in _SCOPE_SEPARATORS.split(raw):
        if item:
            seen.setdefault(item, None)
    return tuple(seen)


@beartype
def format_scope(scope: Scope) -> str:
    """Render a Scope the way RFC 6749 §3.3 puts it on the wire."""
    return " ".join(scope)


@beartype
def excess_scopes(requested: Scope, granted: Scope) -> list[str]:
    """Requested scopes outside the grant, in request order."""
    allowed = set(granted)
    return [s for s in requested if s not in allowed]
