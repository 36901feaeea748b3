"""Example: list and reconcile a broadcaster's LiveKit ingresses.

This script shows the provider service and the reconciler on their own,
without the HTTP layer or MongoDB.

Prerequisites:
    1. Install the project: pip install -e .
    2. Set environment variables in env.local (do not commit):
       LIVEKIT_URL=wss://<your-livekit-host>
       LIVEKIT_API_KEY=PLACEHOLDER_LIVEKIT_API_KEY
       LIVEKIT_API_SECRET=PLACEHOLDER_LIVEKIT_API_SECRET

Run:
    python examples/livekit_ingress_example.py u.demo
"""

import asyncio
import sys

from app.app_config import get_app_environ_config
from app.domain.live.ingress._provision import build_create_ingress_request
from app.domain.live.ingress._reconcile import ResourceReconciler
from app.domain.live.ingress.ingress_models import IngressInputMode
from app.services.integrations.livekit_service import LivekitService


async def main(identity: str):
    livekit = LivekitService.from_config(get_app_environ_config())

    print("LiveKit Ingress Example")
    print("=" * 50)

    print(f"\n1. Ingresses currently in room {identity}:")
    for ingress in await livekit.list_ingress(room_name=identity):
        print(f"   {ingress.ingress_id} participant={ingress.participant_identity}")

    print("\n2. Creating a WHIP ingress:")
    info = await livekit.create_ingress(
        build_create_ingress_request(identity, "Demo Broadcaster", IngressInputMode.WHIP)
    )
    if info is not None:
        print(f"   Ingress: {info.ingress_id}")
        print(f"   URL: {info.url}")

    print("\n3. Reconciling (deletes everything the identity owns):")
    report = await ResourceReconciler(livekit).reconcile(identity)
    print(f"   Deleted ingresses: {report.deleted_ingress_ids}")
    print(f"   Deleted rooms: {report.deleted_rooms}")
    print(f"   Skipped: {report.skipped_ingress_ids + report.skipped_rooms}")

    print("\n" + "=" * 50)
    print("Example completed!")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "u.demo"))
