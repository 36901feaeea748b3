"""Sweeps the LiveKit ingresses and rooms that belong to one broadcaster."""

import asyncio
from collections.abc import Awaitable, Callable

from livekit import api
from loguru import logger

from app.services.integrations.livekit_service import LivekitService

from .ingress_models import ReconcileReport


def owns_ingress(identity: str, ingress: api.IngressInfo) -> bool:
    """Exact-match ownership: the ingress targets the identity's room or publishes as the identity."""
    return ingress.room_name == identity or ingress.participant_identity == identity


def owns_room(identity: str, room: api.Room) -> bool:
    return room.name == identity


class ResourceReconciler:
    """Deletes every LiveKit ingress and room owned by a broadcaster identity.

    Listing is filtered server-side by room name, but each listed resource is
    re-checked locally before deletion; anything that does not belong to the
    identity is skipped and logged. Deletions are independent: one failure
    never prevents the others.
    """

    def __init__(self, livekit: LivekitService) -> None:
        self.livekit = livekit

    async def reconcile(self, identity: str) -> ReconcileReport:
        """Delete the identity's ingresses, then its room.

        Raises:
            TwirpError / asyncio.TimeoutError: If listing fails (deletion failures are only reported)
        """
        report = ReconcileReport(identity=identity)

        ingresses = await self.livekit.list_ingress(room_name=identity)
        rooms = await self.livekit.list_rooms(names=[identity])
        logger.info(
            f"[reconcile] Found {len(ingresses)} ingresses and {len(rooms)} rooms for host {identity}"
        )

        ingress_ids: list[str] = []
        for ingress in ingresses:
            if not ingress.ingress_id:
                continue
            logger.debug(
                f"[reconcile] Inspecting ingress: {ingress.ingress_id}, room: {ingress.room_name}, "
                f"participant: {ingress.participant_identity}"
            )
            if owns_ingress(identity, ingress):
                ingress_ids.append(ingress.ingress_id)
            else:
                logger.warning(
                    f"[reconcile] SAFETY: skipping ingress {ingress.ingress_id} "
                    f"(room={ingress.room_name}, participant={ingress.participant_identity}) "
                    f"- it does not belong to host {identity}"
                )
                report.skipped_ingress_ids.append(ingress.ingress_id)

        room_names: list[str] = []
        for room in rooms:
            if owns_room(identity, room):
                room_names.append(room.name)
            else:
                logger.warning(
                    f"[reconcile] SAFETY: skipping room {room.name} - it does not belong to host {identity}"
                )
                report.skipped_rooms.append(room.name)

        await self._sweep(
            report,
            "ingress",
            ingress_ids,
            self.livekit.delete_ingress,
            report.deleted_ingress_ids,
        )
        await self._sweep(
            report,
            "room",
            room_names,
            self.livekit.delete_room,
            report.deleted_rooms,
        )

        if report.clean:
            logger.info(
                f"[reconcile] Host {identity} clean: deleted ingresses={report.deleted_ingress_ids} "
                f"rooms={report.deleted_rooms}"
            )
        else:
            logger.warning(f"[reconcile] Host {identity} partially reconciled: failed={report.failed}")

        return report

    async def _sweep(
        self,
        report: ReconcileReport,
        kind: str,
        names: list[str],
        delete: Callable[[str], Awaitable[None]],
        deleted: list[str],
    ) -> None:
        results = await asyncio.gather(*(delete(name) for name in names), return_exceptions=True)
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.error(f"[reconcile] Failed to delete {kind} {name} for host {report.identity}: {result!r}")
                report.failed[f"{kind}:{name}"] = str(result) or type(result).__name__
            else:
                deleted.append(name)
