# hcb/config/constants.py
"""
Contains default configuration dictionaries, timing constants, and other
static values for the Haptic Command Bridge.
"""

# --- Configuration Constants ---
CONFIG_FILE_PATH = 'config.yaml'

# --- Arbitration Timing ---

POLL_INTERVAL_S: float = 0.012
DEDUP_THRESHOLD: float = 0.12

FADE_STEP: float = 0.1
FADE_BASE_TICK_MS: float = 500.0
FADE_MIN_SMOOTHNESS: float = 0.1

# Oscillation half-cycle endpoints, lower endpoint first
OSCILLATION_ENDPOINTS: tuple[float, float] = (0.35, 1.0)
OSCILLATION_SLACK: float = 1.1
REST_RETURN_MS: int = 250
SHUTDOWN_RETURN_MS: int = 500
SHUTDOWN_SETTLE_MS: int = 1000

# Virtual stroke speed in position units per second
STROKE_UNITS_PER_S: float = 1.0

PULSE_MOVE_MS: int = 250
GESTURE_MAX_HOLD_MS: float = 1000.0


# --- Default Application-Wide Configuration ---

DEFAULT_SETTINGS: dict = {
    # Device-control service
    'server_address': 'ws://127.0.0.1:12345',
    'client_name': 'HapticCommandBridge',
    'scan_on_connect': True,

    # Session lifecycle
    'loop_join_timeout_s': 3.0,

    # Gestures
    'default_fade_smoothness': 1.0,

    # Miscellaneous
    'print_device_commands': False,
}

# Keys renamed in earlier config files, old -> new
LEGACY_SETTINGS_KEYS: dict[str, str] = {
    'websocket_url': 'server_address',
    'name': 'client_name',
}

# Accepted websocket schemes for the server address
SERVER_ADDRESS_SCHEMES: tuple[str, ...] = ('ws://', 'wss://')
