DOMAIN = "nexus_hvac"
VERSION = "1.0.0"
MANUFACTURER = "NEXUS HVAC"

# Default backend; edited per deployment, overridable per config entry.
API_BASE_URL = "http://192.168.1.100:3000"

CONF_IDENTIFIER = "identifier"
CONF_PASSWORD = "password"
CONF_BASE_URL = "base_url"

REQUEST_TIMEOUT = 10  # seconds, no retry

# Update intervals (seconds)
MONITOR_INTERVAL = 1   # single-device live status
LIST_INTERVAL = 5      # fleet listing and customer dashboard

# Durable session record
STORAGE_KEY = f"{DOMAIN}.session"
STORAGE_VERSION = 1

# Roles
ROLE_ADMIN = "admin"
ROLE_TECHNICIAN = "technician"
ROLE_MANAGER = "manager"
ROLE_CUSTOMER = "customer"
ROLES = (ROLE_ADMIN, ROLE_TECHNICIAN, ROLE_MANAGER, ROLE_CUSTOMER)

# Company scopes an unscoped admin sees, fetched in this order
ADMIN_SCOPES = ("HVAC_A", "HVAC_B")

# Views (screens) of the navigation tree
VIEW_LOGIN = "login"
VIEW_DEVICE_LIST = "device_list"
VIEW_MONITORING = "monitoring"
VIEW_SETUP_WIZARD = "setup_wizard"
VIEW_SCAN_DEVICE = "scan_device"
VIEW_CUSTOMER_DASHBOARD = "customer_dashboard"
VIEW_PROFILE = "profile"
VIEW_NOTIFICATIONS = "notifications"
VIEW_REPORTS = "reports"

# Health states reported by the backend
HEALTH_OK = "OK"
HEALTH_WARNING = "Warning"
HEALTH_CRITICAL = "Critical"
HEALTH_OFFLINE = "Offline"
HEALTH_STATES = (HEALTH_OK, HEALTH_WARNING, HEALTH_CRITICAL, HEALTH_OFFLINE)

# Health score banding: score > HEALTHY_THRESHOLD is healthy,
# score > WARNING_THRESHOLD is warning, anything else is critical.
HEALTHY_THRESHOLD = 80
WARNING_THRESHOLD = 60

BAND_HEALTHY = "healthy"
BAND_WARNING = "warning"
BAND_CRITICAL = "critical"

COLOR_HEALTHY = "#22c55e"
COLOR_WARNING = "#eab308"
COLOR_CRITICAL = "#ef4444"
COLOR_OFFLINE = "#64748b"
COLOR_NEUTRAL = "#94a3b8"

HEALTH_STATE_COLORS: dict[str, str] = {
    HEALTH_OK: COLOR_HEALTHY,
    HEALTH_WARNING: COLOR_WARNING,
    HEALTH_CRITICAL: COLOR_CRITICAL,
    HEALTH_OFFLINE: COLOR_OFFLINE,
}

# Reports view time range → history endpoint range parameter
REPORT_RANGES: dict[str, str] = {
    "today": "1d",
    "week": "7d",
    "month": "30d",
}
DEFAULT_REPORT_RANGE = "today"

# fetch_history service
SERVICE_FETCH_HISTORY = "fetch_history"
ATTR_MAC = "mac"
ATTR_RANGE = "range"

# Registration wizard steps, in order
STEP_DEVICE = "device"
STEP_WIFI_SSID = "wifi_ssid"
STEP_WIFI_PASSWORD = "wifi_password"
STEP_CONFIRM = "confirm"
WIZARD_STEPS = (STEP_DEVICE, STEP_WIFI_SSID, STEP_WIFI_PASSWORD, STEP_CONFIRM)
