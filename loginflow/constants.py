"""Constants for the login automation."""


# Timeouts (in milliseconds)
DEFAULT_TIMEOUT_MS = 10000
VERIFY_TIMEOUT_FLOOR_MS = 60000
OTP_VERIFY_TIMEOUT_FLOOR_MS = 10000
PRECHECK_TIMEOUT_FLOOR_MS = 10000
OPTIONAL_FIELD_TIMEOUT_MS = 7000
INTERSTITIAL_TIMEOUT_MS = 2000
NAVIGATION_WAIT_TIMEOUT_MS = 45000
VISIBILITY_POLL_INTERVAL_MS = 250

# Second factor
OTP_MIN_DIGIT_FIELDS = 6

# Single combined one-time-code field, highest priority first
OTP_SINGLE_SELECTORS = [
    'input[name="pin"][maxlength="6"]',
    'input[name="code"]',
    'input[autocomplete="one-time-code"]',
    'input[id*="verification" i]',
    'input[inputmode="numeric"][maxlength="6"]',
]

# One box per digit
OTP_DIGIT_SELECTOR = (
    'input[aria-label*="digit" i], '
    'input[pattern="\\d*"][maxlength="1"], '
    'input[inputmode="numeric"][maxlength="1"]'
)

# Generic controls clicked once when a submitted code does not settle the page
GENERIC_SUBMIT_SELECTORS = [
    'button:has-text("Submit")',
    'button:has-text("Verify")',
    'button:has-text("Continue")',
    'button[type="submit"]',
    'input[type="submit"]',
]

# Content-based rejection markers shared by most login forms
COMMON_REJECTION_MARKERS = [
    "text=Invalid credentials",
    "text=Incorrect email or password",
    "text=Wrong email or password",
]

# Custom credential field names that carry an organization / tenant
ORGANIZATION_FIELD_ALIASES = ("organization", "company")
