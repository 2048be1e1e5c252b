"""GPS/NMEA constants and location update cadence."""

# Update cadence (seconds)
LOCATION_UPDATE_INTERVAL = 5.0
FASTEST_LOCATION_UPDATE_INTERVAL = 2.0
MAX_LOCATION_UPDATE_DELAY = LOCATION_UPDATE_INTERVAL * 2

# Speed conversion factors
KMH_PER_KNOT = 1.852

# Fix mode mapping (from NMEA GSA sentence)
FIX_MODE_MAP = {
    1: "No fix",
    2: "2D",
    3: "3D",
}

# Typical user equivalent range error for a consumer receiver; multiplied by
# HDOP it gives the horizontal accuracy radius.
DEFAULT_UERE_M = 5.0

# Default serial configuration
DEFAULT_GPS_PORT = "/dev/serial0"
DEFAULT_BAUD_RATE = 9600
READ_TIMEOUT = 1.0
ERROR_BACKOFF = 0.5
READ_YIELD = 0.01
