"""Append-only audit trail of privileged actions."""
import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from bitrader.core.deps import client_ip
from bitrader.models.admin import AdminLog

logger = logging.getLogger(__name__)


def log_admin_activity(
    db: AsyncSession,
    admin_id: int,
    action: str,
    resource: str,
    resource_id: Optional[object] = None,
    details: Optional[dict] = None,
    request: Optional[Request] = None,
) -> AdminLog:
    """Stage an AdminLog row on ``db``.

    The row is committed together with the mutation it describes, so an
    action is either recorded and applied or neither.
    """
    entry = AdminLog(
        admin_id=admin_id,
        action=action,
        resource=resource,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
        ip_address=client_ip(request) if request else None,
        user_agent=request.headers.get("user-agent") if request else None,
    )
    db.add(entry)
    logger.info("admin %s %s %s %s", admin_id, action, resource, resource_id)
    return entry


async def list_admin_logs(
    db: AsyncSession,
    admin_id: Optional[int] = None,
    limit: int = 100,
) -> list:
    query = select(AdminLog).order_by(desc(AdminLog.created_at), desc(AdminLog.id)).limit(limit)
    if admin_id is not None:
        query = query.where(AdminLog.admin_id == admin_id)
    return list(await db.scalars(query))


async def list_user_activity(db: AsyncSession, user_id: int, limit: int = 50) -> list:
    """Audit rows about a user's account or portfolio."""
    return list(await db.scalars(
        select(AdminLog)
        .where(
            AdminLog.resource.in_(("USER", "PORTFOLIO")),
            AdminLog.resource_id == str(user_id),
        )
        .order_by(desc(AdminLog.created_at), desc(AdminLog.id))
        .limit(limit)
    ))
