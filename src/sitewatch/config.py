import os

# ============================================================================
# DATABASE CONFIGURATION (MYSQL)
# ============================================================================
# DATABASE_URL overrides everything below, e.g. "sqlite:///data/sitewatch.db"
DATABASE_URL = os.getenv("DATABASE_URL", "")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "3306"))
DB_USER = os.getenv("DB_USER", "sitewatch")
DB_PASSWORD = os.getenv("DB_PASSWORD", "")  # never commit a default here
DB_NAME = os.getenv("DB_NAME", "hosting")
# Managed MySQL hosts present certificates we do not verify
DB_SSL = os.getenv("DB_SSL", "false").lower() == "true"

# ============================================================================
# MESSAGE BUS (MQTT) CONFIGURATION
# ============================================================================
MQTT_URL = os.getenv("MQTT_URL", "mqtt://localhost:1883")
BUS_CONNECT_TIMEOUT = float(os.getenv("BUS_CONNECT_TIMEOUT", "5.0"))
BUS_RECONNECT_PERIOD = float(os.getenv("BUS_RECONNECT_PERIOD", "5.0"))
# Feed synthetic values to subscribers while the broker is unreachable
BUS_SIMULATE_OFFLINE = os.getenv("BUS_SIMULATE_OFFLINE", "true").lower() == "true"
BUS_SIMULATION_INTERVAL = float(os.getenv("BUS_SIMULATION_INTERVAL", "5.0"))
# Dashboard sessions that stop checking in for this long lose their subscriptions
SESSION_IDLE_TIMEOUT = float(os.getenv("SESSION_IDLE_TIMEOUT", "120"))

# ============================================================================
# HISTORICAL DATA CONFIGURATION
# ============================================================================
HISTORY_DEFAULT_LIMIT = int(os.getenv("HISTORY_DEFAULT_LIMIT", "5000"))
HISTORY_MAX_LIMIT = int(os.getenv("HISTORY_MAX_LIMIT", "50000"))

# ============================================================================
# SITE STATUS CONFIGURATION
# ============================================================================
PROBE_TIMEOUT = float(os.getenv("PROBE_TIMEOUT", "3.0"))
PROBE_BATCH_SIZE = int(os.getenv("PROBE_BATCH_SIZE", "5"))
SITES_FILE = os.getenv("SITES_FILE", "")

# ============================================================================
# API CONFIGURATION
# ============================================================================
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_TITLE = "SiteWatch API"
API_VERSION = "1.0.0"
# Where the dashboard finds the API
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{API_PORT}")

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ============================================================================
# APPLICATION CONFIGURATION
# ============================================================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# ============================================================================
# VALIDATION
# ============================================================================
def validate_config():
    """Validate all required configuration is set."""
    required = [
        ("MQTT_URL", MQTT_URL),
    ]
    if not DATABASE_URL:
        required += [
            ("DB_HOST", DB_HOST),
            ("DB_USER", DB_USER),
            ("DB_PASSWORD", DB_PASSWORD),
            ("DB_NAME", DB_NAME),
        ]

    missing = [name for name, value in required if not value]

    if missing:
        raise ValueError(f"Missing required configuration: {', '.join(missing)}")

    if BUS_CONNECT_TIMEOUT <= 0 or BUS_SIMULATION_INTERVAL <= 0 or SESSION_IDLE_TIMEOUT <= 0:
        raise ValueError("BUS_CONNECT_TIMEOUT, BUS_SIMULATION_INTERVAL and SESSION_IDLE_TIMEOUT must be positive")


if __name__ == "__main__":
    validate_config()
    print("✅ Config validation passed!")
