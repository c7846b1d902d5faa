# This project was developed with assistance from AI tools.
"""Capability link service.

A link is an opaque URL-safe token that grants an unauthenticated applicant
access to one case's wizard until it expires. A case holds at most one
active link: issuing a new one revokes the previous. Expiry is detected
lazily when a token is presented and never changes the case status.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from db import Case, CaseLink
from db.enums import ActorType, CaseStatus, CaseTrigger, LinkStatus
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import settings
from ..schemas.auth import UserContext
from .scope import apply_data_scope
from .workflow import Actor, InvalidTransitionError, apply_transition, as_utc

logger = logging.getLogger(__name__)

FORM_PURPOSE = "form_submission"
SUPPLEMENT_PURPOSE = "supplement"

# Statuses from which sending a link moves the case along SEND_LINK.
_SEND_LINK_STATUSES = frozenset(
    {CaseStatus.CREATED, CaseStatus.LINK_SENT, CaseStatus.CLIENT_FILLING}
)


class LinkAccessError(ValueError):
    """Raised when a presented token cannot be used.

    ``reason`` is one of ``not_found``, ``expired``, ``revoked``, ``used``.
    """

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


def _new_token() -> str:
    return secrets.token_urlsafe(32)


def _clamp_hours(expiry_hours: int | None) -> int:
    hours = expiry_hours or settings.LINK_DEFAULT_EXPIRY_HOURS
    return max(1, min(hours, settings.LINK_MAX_EXPIRY_HOURS))


async def create_link(
    session: AsyncSession,
    case: Case,
    *,
    created_by: int | None,
    expiry_hours: int | None = None,
    purpose: str = FORM_PURPOSE,
) -> CaseLink:
    """Revoke the case's active link (if any) and insert a fresh one.

    Flushes but does not commit.
    """
    await session.execute(
        update(CaseLink)
        .where(CaseLink.case_id == case.id, CaseLink.status == LinkStatus.ACTIVE)
        .values(status=LinkStatus.REVOKED)
        .execution_options(synchronize_session="fetch")
    )
    token = _new_token()
    link = CaseLink(
        case_id=case.id,
        token=token,
        purpose=purpose,
        status=LinkStatus.ACTIVE,
        expires_at=datetime.now(UTC) + timedelta(hours=_clamp_hours(expiry_hours)),
        access_url=f"{settings.PUBLIC_APP_URL.rstrip('/')}/fill/{token}",
        access_count=0,
        created_by=created_by,
    )
    session.add(link)
    await session.flush()
    logger.info("Issued %s link %s for case %s", purpose, link.id, case.id)
    return link


async def issue_link(
    session: AsyncSession,
    user: UserContext,
    case: Case,
    *,
    expiry_hours: int | None = None,
    purpose: str | None = None,
) -> CaseLink:
    """Issue a link for an already-scoped case and move it along SEND_LINK.

    While the case waits for supplementary material a new supplement link
    is issued without a status change.

    Raises:
        InvalidTransitionError: the case is past the point where links help.
    """
    actor = Actor(type=ActorType.CONSULTANT, id=str(user.user_id), name=user.username)
    if case.status == CaseStatus.NEED_SUPPLEMENT:
        link = await create_link(
            session,
            case,
            created_by=user.user_id,
            expiry_hours=expiry_hours,
            purpose=purpose or SUPPLEMENT_PURPOSE,
        )
    elif case.status in _SEND_LINK_STATUSES:
        link = await create_link(
            session,
            case,
            created_by=user.user_id,
            expiry_hours=expiry_hours,
            purpose=purpose or FORM_PURPOSE,
        )
        await apply_transition(
            session,
            case,
            CaseTrigger.SEND_LINK,
            actor,
            event_data={"link_id": link.id, "expires_at": link.expires_at.isoformat()},
        )
    else:
        raise InvalidTransitionError(
            f"Cannot issue a link while the case is '{case.status.value}'."
        )
    return link


async def list_links(session: AsyncSession, user: UserContext, case_id: int) -> list[CaseLink] | None:
    """Links for a case, newest first. None when the case is out of scope."""
    case_stmt = apply_data_scope(select(Case.id).where(Case.id == case_id), user.data_scope)
    if (await session.execute(case_stmt)).scalar_one_or_none() is None:
        return None
    stmt = select(CaseLink).where(CaseLink.case_id == case_id).order_by(CaseLink.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def revoke_link(session: AsyncSession, user: UserContext, link_id: int) -> CaseLink | None:
    """Revoke an active link. Returns None when not found or out of scope.

    Raises:
        LinkAccessError: the link is no longer active.
    """
    stmt = apply_data_scope(
        select(CaseLink).where(CaseLink.id == link_id), user.data_scope, join_to_case=CaseLink.case
    )
    link = (await session.execute(stmt)).scalar_one_or_none()
    if link is None:
        return None
    if link.status != LinkStatus.ACTIVE:
        raise LinkAccessError(link.status.value, f"Link is already {link.status.value}.")
    link.status = LinkStatus.REVOKED
    await session.commit()
    await session.refresh(link)
    logger.info("Link %s revoked by user %s", link_id, user.user_id)
    return link


async def resolve_token(
    session: AsyncSession,
    token: str,
    *,
    allow_used: bool = False,
) -> CaseLink:
    """Return the link for ``token`` with its case and applicant loaded.

    A link found past its expiry is marked expired (and committed) before
    the error is raised. ``allow_used`` admits links whose wizard has
    already been submitted, for the read-only and confirmation views.

    Raises:
        LinkAccessError: unknown, expired, revoked or (unless allowed) used.
    """
    stmt = (
        select(CaseLink)
        .options(selectinload(CaseLink.case).selectinload(Case.applicant))
        .where(CaseLink.token == token)
    )
    link = (await session.execute(stmt)).scalar_one_or_none()
    if link is None:
        raise LinkAccessError("not_found", "Link not found.")
    if link.status == LinkStatus.REVOKED:
        raise LinkAccessError("revoked", "This link has been revoked.")
    if link.status == LinkStatus.EXPIRED:
        raise LinkAccessError("expired", "This link has expired.")
    if link.status == LinkStatus.USED and not allow_used:
        raise LinkAccessError("used", "This link has already been used.")
    if as_utc(link.expires_at) <= datetime.now(UTC):
        link.status = LinkStatus.EXPIRED
        await session.commit()
        logger.info("Link %s observed past expiry, marked expired", link.id)
        raise LinkAccessError("expired", "This link has expired.")
    return link


def record_access(link: CaseLink) -> None:
    """Bump the access counter; stamp the first access."""
    if link.first_accessed_at is None:
        link.first_accessed_at = datetime.now(UTC)
    link.access_count = (link.access_count or 0) + 1
