"""Internal constants shared across the library."""

DEVICES_ENDPOINT = "/api/v1/developer/devices"
DOORS_ENDPOINT = "/api/v1/developer/doors"
NOTIFICATIONS_ENDPOINT = "/api/v1/developer/devices/notifications"
USER_AGENT = "pyunifiaccess"

#: ``code`` value the developer API puts in successful response envelopes.
API_SUCCESS_CODE = "SUCCESS"

#: ``data`` value of the hub's keepalive frame.
HEARTBEAT_SENTINEL = "Hello"

DEFAULT_HEARTBEAT_TIMEOUT = 60.0
DEFAULT_WATCHDOG_INTERVAL = 60.0
DEFAULT_DEBOUNCE_DELAY = 5.0
DEFAULT_RECONNECT_DELAY = 1.0
DEFAULT_REQUEST_TIMEOUT = 10.0
CONNECT_TIMEOUT = 15.0
STREAM_CLOSE_TIMEOUT = 2.0

# ------------------------------------------------------------------
# Stream event tags
# ------------------------------------------------------------------

EVENT_REMOTE_UNLOCK = "access.data.device.remote_unlock"
EVENT_DEVICE_UPDATE = "access.data.device.update"
EVENT_LOGS_ADD = "access.logs.add"
EVENT_DOOR_BELL = "access.hw.door_bell"
EVENT_REMOTE_VIEW = "access.remote_view"
EVENT_REMOTE_VIEW_CHANGE = "access.remote_view.change"
