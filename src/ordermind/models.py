"""
Alembic model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

from ordermind.modules.messages.models import Attachment, Message  # noqa: F401
from ordermind.modules.orders.models import Order  # noqa: F401
from ordermind.modules.audit.models import AuditEvent  # noqa: F401
from ordermind.modules.parsing.models import EvidencePackRecord  # noqa: F401
