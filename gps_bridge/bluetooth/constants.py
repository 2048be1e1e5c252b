"""Bluetooth Serial Port Profile constants and configuration defaults."""

import re

# Standard SPP service class UUID. The RFCOMM channel is looked up from the
# peer's service record; HC-05/HC-06 modules advertise it on channel 1.
SPP_UUID = "00001101-0000-1000-8000-00805F9B34FB"
DEFAULT_RFCOMM_CHANNEL = 1

# Replace with the address of your own module, or rely on the paired-device
# name match below.
DEFAULT_FALLBACK_ADDRESS = "98:D3:31:FB:48:F6"

DEFAULT_DEVICE_NAMES = (
    "HC-06",
    "HC-05",
    "HC06",
    "HC05",
    "Bluetooth Module",
)

DEFAULT_CONNECT_TIMEOUT = 10.0
READ_BUFFER_SIZE = 1024
TEXT_ENCODING = "utf-8"

BLUETOOTHCTL = "bluetoothctl"
SDPTOOL = "sdptool"

MAC_ADDRESS_PATTERN = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")
