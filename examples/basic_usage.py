"""Basic usage example for pykasacloud library."""

import asyncio
import logging

from pykasacloud import DeviceNotFoundError, KasaClient


async def main() -> None:
    """List the plugs on the account and toggle one by name."""
    logging.basicConfig(level=logging.INFO)

    # Client ID, token and device list are cached in the user cache directory,
    # so later runs skip login and discovery.
    async with KasaClient(
        username="your@email.com",
        password="your_password",
    ) as client:
        print(f"Found {len(client.devices)} device(s)")

        for device in client.devices:
            print(f"\nDevice: {device.alias}")
            print(f"  Device ID: {device.device_id}")
            print(f"  Model: {device.model}")
            print(f"  MAC: {device.mac}")
            print(f"  Online: {device.is_online}")

            if device.is_online:
                on = await client.get_relay_state(device.device_id)
                print(f"  Relay: {'on' if on else 'off'}")

        try:
            new_state = await client.toggle_by_name("Desk Lamp")
        except DeviceNotFoundError:
            print("\nNo plug named 'Desk Lamp' on this account")
        else:
            print(f"\nDesk Lamp is now {'on' if new_state else 'off'}")


if __name__ == "__main__":
    asyncio.run(main())
