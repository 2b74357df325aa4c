"""Constants for account roles, setup states, ledger statuses and settlement policy."""

from decimal import Decimal
from enum import Enum


class AccountRole(str, Enum):
    """Enumeration of account roles on the marketplace."""

    admin = "admin"
    user = "user"
    expert = "expert"
    organisation = "organisation"


class SetupState(str, Enum):
    """Position of an account in the first-login setup flow.

    The order of declaration is the order of the flow; an account only
    ever moves forward.
    """

    unverified = "unverified"
    challenge_issued = "challenge_issued"
    email_verified = "email_verified"
    profile_pending = "profile_pending"
    unlocked = "unlocked"


SETUP_ORDER = list(SetupState)


def setup_reached(current: SetupState, target: SetupState) -> bool:
    """Return True if `current` is at or beyond `target` in the setup flow."""
    return SETUP_ORDER.index(current) >= SETUP_ORDER.index(target)


class ChallengeState(str, Enum):
    """State of the one-time code attached to an account."""

    none = "none"
    issued = "issued"
    consumed = "consumed"


class PaymentStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"
    partially_refunded = "partially_refunded"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"
    no_show = "no_show"


class AppointmentPaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class ReportType(str, Enum):
    user = "user"
    expert = "expert"
    organisation = "organisation"
    message = "message"
    other = "other"


class Theme(str, Enum):
    system = "system"
    light = "light"
    dark = "dark"


# Flat split applied to the live unsettled total on the dashboard.
SETTLEMENT_SPLIT = {
    "expert": Decimal("0.60"),
    "org": Decimal("0.20"),
    "tax": Decimal("0.10"),
    "adminNet": Decimal("0.10"),
}

CANCELLATION_FEE_RATE = Decimal("0.10")

# Pages the route gate knows about
LOGIN_PATH = "/login"
SETUP_PATH = "/setup-account"
DASHBOARD_PATH = "/dashboard"
AUTH_PAGE_PREFIXES = ("/login", "/forgot-password", "/reset-password")

AUTH_COOKIE_NAME = "auth_token"

# Word lists for generated handles and placeholder names
HANDLE_ADJECTIVES = [
    "able", "brave", "bright", "calm", "clever", "cosmic", "crisp", "daring",
    "eager", "fancy", "fierce", "gentle", "golden", "happy", "honest", "jolly",
    "keen", "kind", "lively", "lucky", "mellow", "merry", "mighty", "noble",
    "polite", "proud", "quick", "quiet", "rapid", "royal", "shiny", "silent",
    "smart", "steady", "sunny", "swift", "tidy", "vivid", "wise", "witty",
]

HANDLE_ANIMALS = [
    "badger", "bear", "beaver", "bison", "cheetah", "crane", "dolphin", "eagle",
    "falcon", "ferret", "fox", "gazelle", "gecko", "heron", "ibis", "jaguar",
    "koala", "lemur", "leopard", "lion", "lynx", "magpie", "marten", "moose",
    "otter", "owl", "panda", "parrot", "puma", "quail", "raven", "robin",
    "salmon", "seal", "sparrow", "tiger", "turtle", "walrus", "wolf", "zebra",
]
