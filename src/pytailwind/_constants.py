"""Internal constants shared across the library."""

PROTOCOL_VERSION = "0.1"
PRODUCT = "iQ3"
JSON_PATH = "/json"
TOKEN_HEADER = "TOKEN"

# Command names understood by the controller.
CMD_DEVICE_STATUS = "dev_st"
CMD_DOOR_OPERATION = "door_op"
CMD_NOTIFY_URL = "notify_url"

RESULT_OK = "OK"
RESULT_FAIL = "Fail"

# Store keys used by the host platform.
STORE_CONTROLLER_HOST = "controllerHost"
STORE_LOCAL_KEY = "localKey"
STORE_DOOR_INDEX = "doorIndex"
STORE_DISCOVERY_ID = "discoveryId"
# Keys written by older releases, read once during migration.
LEGACY_HOST_KEYS: tuple[str, ...] = ("controllerHostname", "controllerIp")

MAX_HOST_LENGTH = 253
