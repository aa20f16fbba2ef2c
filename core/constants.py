# core/constants.py

from django.db import models


class Gender(models.TextChoices):
    MALE = 'male', 'Male'
    FEMALE = 'female', 'Female'


class CardType(models.TextChoices):
    COUNT = 'count', 'Count card'
    PERIOD = 'period', 'Period card'
    MIXED = 'mixed', 'Mixed card'
    VALUE = 'value', 'Stored-value card'


class CardStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    EXPIRED = 'expired', 'Expired'
    CANCELLED = 'cancelled', 'Cancelled'
    FROZEN = 'frozen', 'Frozen'
    LOST = 'lost', 'Lost'
    DEPLETED = 'depleted', 'Depleted'


class MembershipStatus(models.TextChoices):
    """Projection of a customer's cards stored on the customer record"""
    NONE = 'none', 'No membership'
    ACTIVE = 'active', 'Active'
    EXPIRING = 'expiring', 'Expiring soon'
    EXPIRED = 'expired', 'Expired'


class RechargeType(models.TextChoices):
    COUNT = 'count', 'Add uses'
    AMOUNT = 'amount', 'Add value'
    EXTEND = 'extend', 'Extend validity'
    MIXED = 'mixed', 'Mixed'


class PaymentModes(models.TextChoices):
    CASH = 'cash', 'Cash'
    WECHAT = 'wechat', 'WeChat Pay'
    ALIPAY = 'alipay', 'Alipay'
    CARD = 'card', 'Bank card'
    OTHER = 'other', 'Other'


class ServicePaymentModes(models.TextChoices):
    CASH = 'cash', 'Cash'
    CARD = 'card', 'Bank card'
    MEMBERSHIP = 'membership', 'Membership card'
    WECHAT = 'wechat', 'WeChat Pay'
    ALIPAY = 'alipay', 'Alipay'
    OTHER = 'other', 'Other'


class StockTransactionType(models.TextChoices):
    STOCK_IN = 'in', 'Stock in'
    STOCK_OUT = 'out', 'Stock out'
    SALE = 'sale', 'Sale'


# Identifier formats: prefix strftime pattern and zero-padded sequence width
CARD_NUMBER_PREFIX = 'MK'
CARD_NUMBER_DATE_FORMAT = '%Y%m'
CARD_NUMBER_DIGITS = 3

RECHARGE_RECEIPT_PREFIX = 'RC'
CONSUMPTION_RECEIPT_PREFIX = 'CS'
RECEIPT_DATE_FORMAT = '%Y%m%d'
RECEIPT_DIGITS = 4

# Business thresholds
EXPIRING_SOON_DAYS = 30
LOW_COUNT_THRESHOLD = 5
INACTIVE_DEFAULT_DAYS = 30
INACTIVE_CUSTOMER_LIMIT = 10
DEFAULT_TREND_DAYS = 7
DEFAULT_STOCK_WARNING = 10

# Revenue trend granularity boundaries (window length in days)
DAILY_TREND_MAX_DAYS = 60
MONTHLY_TREND_MAX_DAYS = 730

# Customer activity histogram: (label, min visits, max visits or None)
ACTIVITY_BUCKETS = [
    ('1', 1, 1),
    ('2-3', 2, 3),
    ('4-5', 4, 5),
    ('6-10', 6, 10),
    ('10+', 11, None),
]
