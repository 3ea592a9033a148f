"""Start the SiteWatch dashboard, optionally together with the API it reads history from.

Usage:
    python scripts/run_dashboard.py
    python scripts/run_dashboard.py --port 8600
    python scripts/run_dashboard.py --with-api
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

import argparse
import subprocess

from src.sitewatch import config

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
APP_PATH = os.path.join(PROJECT_ROOT, "src", "sitewatch", "dashboard", "app.py")


def main():
    parser = argparse.ArgumentParser(description="Run the SiteWatch Streamlit dashboard")
    parser.add_argument("--port", type=int, default=int(os.getenv("DASHBOARD_PORT", "8501")))
    parser.add_argument("--with-api", action="store_true", help="Also start the history/status API")
    args = parser.parse_args()

    api = None
    if args.with_api:
        print(f"🛰️  Starting API on port {config.API_PORT}...")
        api = subprocess.Popen([sys.executable, "-m", "src.sitewatch.api_server"], cwd=PROJECT_ROOT)

    print("⛏️  SiteWatch dashboard")
    print(f"   URL     : http://localhost:{args.port}")
    print(f"   API     : {config.API_BASE_URL}")
    print(f"   Broker  : {config.MQTT_URL}")
    print("   Press Ctrl+C to stop\n")

    try:
        return subprocess.call([
            sys.executable, "-m", "streamlit", "run", APP_PATH,
            "--server.port", str(args.port),
            "--server.address", "0.0.0.0",
            "--browser.gatherUsageStats", "false",
        ], cwd=PROJECT_ROOT)
    except KeyboardInterrupt:
        return 0
    finally:
        if api is not None:
            api.terminate()
            api.wait(timeout=10)


if __name__ == "__main__":
    sys.exit(main())
