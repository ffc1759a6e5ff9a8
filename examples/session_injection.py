"""Example showing session injection and a custom cache."""

import asyncio
from pathlib import Path

from aiohttp import ClientSession

from pykasacloud import FileStore, KasaClient, MemoryStore


async def main() -> None:
    """Use an application-managed session with a project-local cache."""
    async with ClientSession() as session:
        client = KasaClient(
            username="your@email.com",
            password="your_password",
            session=session,  # Inject existing session
            store=FileStore(Path(".kasa-cache")),
        )

        async with client:
            for plug in (client.get_plug(device.device_id) for device in client.devices):
                await plug.refresh()
                print(f"  - {plug} is {'on' if plug.is_on else 'off'}")

        # Session remains open after client exits
        print("\nClient closed, but session still available for other requests")


async def stateless() -> None:
    """Run without touching the disk, forcing a fresh login and device list."""
    async with KasaClient(
        "your@email.com",
        "your_password",
        store=MemoryStore(),
        force_reauthentication=True,
        force_refresh_devices=True,
    ) as client:
        print(f"Logged in as client {client.client_id}")
        print(f"Devices by name: {sorted(client.devices_by_name)}")


if __name__ == "__main__":
    asyncio.run(main())
    asyncio.run(stateless())
