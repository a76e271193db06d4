"""
Delete-request webhook package.

Keep import side-effect free.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from forgetbridge.webhooks.service import DeleteRequestService  # noqa: F401
