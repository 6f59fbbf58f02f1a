"""Audit trail for segment changes pushed to the CRM backend."""

from fastapi import Request

from crm_engine.auth.dependencies import CurrentUser
from crm_engine.utils.logging import get_logger

logger = get_logger("audit")


def audit_logged(action: str):
    """Dependency factory recording who changed which segment.

    Fields go out as structured JSON keys rather than in the message::

        @router.delete("/{segment_id}", dependencies=[Depends(audit_logged("delete_segment"))])
    """

    async def _log(request: Request, current_user: CurrentUser) -> None:
        try:
            logger.info(
                "AUDIT %s",
                action,
                extra={
                    "action": action,
                    "user_id": current_user.id,
                    "user": current_user.username,
                    "role": current_user.role,
                    "segment_id": request.path_params.get("segment_id"),
                    "client_ip": request.client.host if request.client else "unknown",
                    "request_id": getattr(request.state, "request_id", "n/a"),
                    "method": request.method,
                    "path": request.url.path,
                },
            )
        except Exception:
            logger.warning("Failed to write audit log for action=%s", action, exc_info=True)

    return _log
