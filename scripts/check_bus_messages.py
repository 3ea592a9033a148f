"""Subscribe to one site's topics and print what arrives.

Usage:
    python scripts/check_bus_messages.py [site_id] [seconds]
"""

import os
import sys
import threading

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

import logging

from src.sitewatch import config
from src.sitewatch.bus.client import MessageBusClient
from src.sitewatch.sites.catalog import find_site

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))

site_id = sys.argv[1] if len(sys.argv) > 1 else "f21"
seconds = float(sys.argv[2]) if len(sys.argv) > 2 else 15.0

site = find_site(site_id)
if site is None:
    print(f"Unknown site: {site_id}")
    sys.exit(1)

received = []
enough = threading.Event()


def show(topic, payload):
    received.append((topic, payload))
    print(f"  {topic:<40} {payload}")
    if len(received) >= 20:
        enough.set()


print(f"Connecting to {config.MQTT_URL} (simulation disabled)...")
with MessageBusClient.from_config(simulate_when_offline=False) as bus:
    bus.on_state_change(lambda state: print(f"[state] {state.value}"))
    bus.on_message(show)
    for topic in site.topics.all():
        bus.subscribe(topic)
    print(f"Subscribed to {len(bus.registry)} topics of {site.name}, waiting {seconds:.0f}s...")
    enough.wait(seconds)

print(f"\nReceived {len(received)} messages")
if not received:
    print("No messages received")
