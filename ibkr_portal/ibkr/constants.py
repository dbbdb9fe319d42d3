"""
Static tables for the Client Portal Gateway: API paths, error codes and
the accepted values for order, contract and market data parameters.
"""

API_VERSION = "v1"
API_BASE_PATH = "/v1/api"
DEFAULT_GATEWAY_URL = "https://localhost:5000"

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")

# Connectivity (11xx/21xx) and order rejection (100xx) codes
IBKR_ERROR_CODES: dict[str, str] = {
    "1100": "Connectivity between IB and TWS has been lost",
    "1101": "Connectivity between IB and TWS has been restored",
    "1102": "Connectivity between IB and TWS has been restored - data maintained",
    "2100": "New account data requested",
    "2101": "Unable to subscribe to account",
    "2102": "Unable to modify order",
    "2103": "Market data farm connection is broken",
    "2104": "Market data farm connection is OK",
    "2105": "Historical Market Data Service is inactive",
    "2106": "Historical Market Data Service is connected",
    "2107": "Historical Market Data Service is inactive but active for contract",
    "2108": "Market data farm is inactive",
    "2109": "Order event warning - your order is not active",
    "2110": "Connectivity between TWS and server is broken",
    "2137": "Cross side warning",
    "10000": "Order rejected - insufficient funds",
    "10001": "Order rejected - contract not found",
    "10002": "Order rejected - invalid account",
    "10003": "Order rejected - price out of range",
    "10004": "Order rejected - duplicate order",
    "10005": "Order rejected - trading halted",
    "10006": "Order rejected - order would trigger immediately",
    "10007": "Order rejected - invalid order type",
    "10008": "Order rejected - size out of range",
    "10009": "Order rejected - order not found",
    "10010": "Order rejected - cannot cancel filled order",
    "10011": "Order rejected - invalid time in force",
    "10012": "Order rejected - invalid security type",
    "10013": "Order rejected - cannot route order",
    "10014": "Order rejected - market closed",
    "10015": "Order rejected - not authenticated",
    "10016": "Order rejected - pending other request",
    "10017": "Order rejected - order already filled",
    "10018": "Order rejected - order already cancelled",
    "10019": "Order rejected - order modification failed",
    "10020": "Order rejected - internal error",
    "10021": "Order rejected - invalid quantity",
    "10022": "Order rejected - contract expired",
    "10023": "Order rejected - invalid exchange",
    "10024": "Order rejected - position limit exceeded",
    "10025": "Order rejected - day trading margin call",
}

ORDER_TYPES = (
    "MKT",
    "LMT",
    "STP",
    "STP_LIMIT",
    "TRAIL",
    "TRAIL_LIMIT",
    "MOC",
    "LOC",
    "MOO",
    "LOO",
    "MIT",
    "LIT",
    "PEG_MKT",
    "PEG_MID",
    "PEG_PRIM",
    "REL",
    "VWAP",
)

# Order types that need an extra price field
PRICE_REQUIRED_ORDER_TYPES = ("LMT", "STP_LIMIT", "LIT", "LOC", "LOO")
AUX_PRICE_REQUIRED_ORDER_TYPES = ("STP", "STP_LIMIT")
TRAILING_ORDER_TYPES = ("TRAIL", "TRAIL_LIMIT")

TIME_IN_FORCE = ("DAY", "GTC", "IOC", "FOK", "OPG", "DTC")

SECURITY_TYPES = ("STK", "OPT", "FUT", "CASH", "BOND", "CFD", "WAR", "IND", "FUND", "IOPT")

EXCHANGES = (
    "SMART",
    "NYSE",
    "NASDAQ",
    "AMEX",
    "ARCA",
    "BATS",
    "IEX",
    "CME",
    "GLOBEX",
    "NYMEX",
    "COMEX",
    "CBOT",
    "IDEALPRO",
    "LSE",
    "TSE",
)

BAR_SIZES = (
    "1secs",
    "5secs",
    "10secs",
    "15secs",
    "30secs",
    "1min",
    "2mins",
    "3mins",
    "5mins",
    "10mins",
    "15mins",
    "30mins",
    "1hour",
    "2hours",
    "3hours",
    "4hours",
    "8hours",
    "1day",
    "1week",
    "1month",
)

DURATION_UNITS = ("S", "D", "W", "M", "Y")

ALERT_CONDITIONS = ("price", "trade", "volume", "time", "margin", "bid", "ask", "last")

# "1" = greater than or equal, "2" = less than or equal
ALERT_OPERATORS = ("1", "2")

# Default market data snapshot fields: last, bid, ask
DEFAULT_SNAPSHOT_FIELDS = ("31", "84", "86")

SCANNER_MAX_RESULTS = 50
