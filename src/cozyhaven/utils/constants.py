from decimal import Decimal

MAX_STAY = 30

BED_TYPE_THRESHOLDS = {
    "SINGLE": 1,
    "DOUBLE": 2,
    "KING": 4,
}
ADULT_SURCHARGE_RATE = Decimal("0.4")
CHILD_SURCHARGE_RATE = Decimal("0.2")
CURRENCY_PLACES = Decimal("0.01")

# DynamoDB caps TransactWriteItems at 100 actions
MAX_TRANSACT_ITEMS = 100
MAX_TRANSACTION_RETRIES = 5

CHECKOUT_HOUR_UTC = 11
