"""
Message pattern definitions for the SMS expense engine.

Contains every keyword set and regex table used to classify bank / payment-app
notification messages:
- Eligibility gate keyword sets (bill reminders, marketing, investment noise)
- Currency-amount regex families
- Merchant / counterparty rule tables
- Generic-term and all-caps stop-lists
- Transaction reference patterns used for deduplication

Rule tables are ordered; the first rule that produces a result wins.
"""

import re

# ─────────────────────────────────────────────────────────────
# Eligibility Gate
# ─────────────────────────────────────────────────────────────

# Bill reminders: a bill word AND a reminder phrase must both be present
BILL_WORDS = ("bill", "due", "payable")
BILL_REMINDER_PHRASES = (
    "due date", "overdue", "please pay", "please make",
    "amount payable", "bill payment",
)

MARKETING_KEYWORDS = (
    "offer", "loan", "apply", "qualify", "eligib", "get personal",
    "chance to", "reward", "cashback", "discount",
)

# NAV updates are only noise when no real debit is reported alongside them
NAV_KEYWORDS = ("nav", "mutual fund")
NAV_DEBIT_OVERRIDES = ("debited from", "spent using")
PORTFOLIO_KEYWORDS = ("portfolio value", "sip", "folio")

STRONG_TRANSACTION_INDICATORS = (
    "debited from", "debited by", "spent using", "paid using",
    "withdrawn from", "deducted from", "trf to", "transfer to", "txn",
)

INBOUND_KEYWORDS = ("credited", "received")
OUTBOUND_VERBS = ("debited", "spent", "paid", "deducted")

BALANCE_KEYWORDS = ("balance", "bal")
BALANCE_OUTBOUND_VERBS = ("debited", "spent", "paid", "withdrawn")

# Fallback acceptance: whole-word verbs only ("prepaid" must not count as "paid")
TRANSACTION_VERBS = (
    "debited", "spent", "paid", "charged", "purchased",
    "payment", "transferred", "withdrawn",
)
TRANSACTION_VERB_PATTERN = re.compile(
    r"\b(?:" + "|".join(TRANSACTION_VERBS) + r")\b", re.IGNORECASE
)

BILL_PAYMENT_PHRASES = ("amount payable", "bill payment")

# ─────────────────────────────────────────────────────────────
# Amounts
# ─────────────────────────────────────────────────────────────

# 1,234.50 | 1,00,000 | 5000 | 250.00
AMOUNT_NUMBER = r"\d+(?:,\d{2,3})*(?:\.\d{1,2})?"
CURRENCY_MARKER = r"(?:rs\.?|inr|₹)"

GATE_CURRENCY_PATTERN = re.compile(
    r"(?<![a-z])(?:" + CURRENCY_MARKER + r"\s*)?(" + AMOUNT_NUMBER + r")",
    re.IGNORECASE,
)

# Bill-like bodies, unless the money has already left the account
AMOUNT_BILL_PHRASES = (
    "amount payable", "bill payment", "due amount", "total amount payable",
)
AMOUNT_BILL_OVERRIDES = ("debited", "spent")

AMOUNT_CONTEXT_WORDS = (
    "debited", "spent", "paid", "withdrawn", "deducted", "transferred",
    "transaction", "purchase", "payment", "trf", "txn",
)
AMOUNT_CONTEXT_PATTERN = re.compile(
    "|".join(AMOUNT_CONTEXT_WORDS), re.IGNORECASE
)

# Candidate families in priority order; group 1 is always the number
AMOUNT_PATTERN_FAMILIES = (
    (
        "currency_prefix",
        re.compile(
            r"(?<![a-z])" + CURRENCY_MARKER + r"\s*(" + AMOUNT_NUMBER + r")",
            re.IGNORECASE,
        ),
    ),
    (
        "currency_suffix",
        re.compile(
            r"(?<![\d,.])(" + AMOUNT_NUMBER + r")\s*(?:inr|rs|rupees|₹)(?![a-z])",
            re.IGNORECASE,
        ),
    ),
    (
        "bare_decimal",
        re.compile(r"(?<![\d,.])(\d+(?:,\d{2,3})*\.\d{1,2})(?!\d)"),
    ),
)

# Words near a candidate that mark it as a balance or limit
AMOUNT_EXCLUSION_KEYWORDS = ("avl", "available", "limit", "balance", "bal:")

# "." or ";" ending a clause (not a decimal point or "Rs.")
CLAUSE_BREAK_PATTERN = re.compile(r"[.;](?=\s|$)")

# ─────────────────────────────────────────────────────────────
# Merchants / Counterparties
# ─────────────────────────────────────────────────────────────

FINANCIAL_INSTITUTION_TRIGGERS = (
    "debited from", "withdrawn from", "transaction id", "txn id",
)

BANK_ACCOUNT_PATTERNS = (
    re.compile(r"(?i)(Airtel\s+Payments\s+Bank)\s+a/c"),
    re.compile(r"(?i)(ICICI\s+Bank)\s+(?:a/c|account|card)"),
    re.compile(r"(?i)\b(SBI)\s+(?:a/c|account|card)"),
    re.compile(r"(?i)(HDFC\s+Bank)\s+(?:a/c|account|card)"),
    re.compile(r"(?i)(Axis\s+Bank)\s+(?:a/c|account|card)"),
    re.compile(r"(?i)\b(Kotak)\s+(?:a/c|account|card)"),
    re.compile(r"(?i)(Yes\s+Bank)\s+(?:a/c|account|card)"),
    re.compile(r"(?i)\bfrom\s+(\w+\s+(?:Bank|Payments))\s"),
    re.compile(r"(?i)\busing\s+(\w+\s+Bank)\s"),
)

# "from your bank" names no institution
INSTITUTION_DETERMINERS = ("your", "the", "my", "our", "this")

PAYMENT_APP_PATTERNS = (
    re.compile(r"(?i)\b(Paytm)\s+wallet"),
    re.compile(r"(?i)\b(GooglePay|GPay)\b"),
    re.compile(r"(?i)\b(PhonePe)\b"),
    re.compile(r"(?i)\b(Amazon\s+Pay)\b"),
    re.compile(r"(?i)\b(MobiKwik)\b"),
)

# A merchant phrase: words up to a full stop, stopping before connector words
MERCHANT_PHRASE = (
    r"([^.\s]+(?:\s+(?!(?:on|via|using|from|at|with|ref|refno|upi|avl)\b)[^.\s]+)*)"
)

CARD_DATE_ANCHOR_PATTERN = re.compile(
    r"(?i)\bon\s+(\d{1,2}[-/ ](?:\w{3}|\d{1,2})[-/ ]\d{2,4})\s+on\s+" + MERCHANT_PHRASE
)

TRANSFER_TO_PATTERN = re.compile(r"(?i)\btrf\s+to\s+" + MERCHANT_PHRASE)

DIRECTIONAL_MERCHANT_PATTERNS = (
    ("paid_to", re.compile(r"(?i)\bpaid\s+to\s+" + MERCHANT_PHRASE)),
    ("payment_to", re.compile(r"(?i)\bpayment\s+to\s+" + MERCHANT_PHRASE)),
    ("transferred_to", re.compile(r"(?i)\btransferred\s+to\s+" + MERCHANT_PHRASE)),
    ("purchase_at", re.compile(r"(?i)\bpurchase\s+(?:at|from)\s+" + MERCHANT_PHRASE)),
    ("buying_from", re.compile(r"(?i)\bbuying\s+from\s+" + MERCHANT_PHRASE)),
    ("transaction_at", re.compile(r"(?i)\btransaction\s+at\s+" + MERCHANT_PHRASE)),
)

GENERIC_TERMS = (
    "account", "bank", "card", "credit", "debit", "transaction",
    "payment", "transfer", "atm", "cash", "money", "fund", "wallet",
    "a/c", "balance", "discrepancy", "dial", "alert", "info", "sms",
)

# Clean-up: everything from these phrases onwards is not part of a merchant name
NON_MERCHANT_PHRASES = ("for any", "dial", "discrepancy", "avl limit")
TRAILING_PUNCTUATION_PATTERN = re.compile(r"[.,;:!]$")
TRAILING_REFERENCE_PATTERN = re.compile(r"(?i)\s+(?:refno|reference|ref)\b.*$")

BANK_IDENTIFIERS = ("ICICI", "SBI", "HDFC", "AXIS", "KOTAK", "YES BANK", "PNB")

CAPS_STOP_WORDS = frozenset((
    "INR", "SMS", "RS", "ID", "BLOCK", "CALL", "ALERT", "INFO",
    "BALANCE", "LIMIT", "AVL", "TXN", "FOR", "ANY", "DISCREPANCY", "DIAL",
    "A/C", "ACCOUNT", "DATE", "REF", "DEAR", "USER", "CUSTOMER", "REFNO",
) + BANK_IDENTIFIERS)

CAPS_SEQUENCE_PATTERN = re.compile(r"\b([A-Z]{2,}(?:\s+[A-Z]{2,})*)\b")

BANK_FALLBACK_PATTERN = re.compile(
    r"(?i)\b(Airtel\s+Payments\s+Bank|ICICI\s+Bank|SBI|HDFC\s+Bank|Axis\s+Bank"
    r"|Kotak|Yes\s+Bank|Paytm|PhonePe|GPay|Google\s*Pay|UPI|IMPS|NEFT)\b"
)

# ─────────────────────────────────────────────────────────────
# Transaction References
# ─────────────────────────────────────────────────────────────

REFERENCE_SEPARATOR = r"\.?[\s:#-]*"

TRANSACTION_ID_PATTERNS = (
    ("txn_id", re.compile(r"(?i)\bTxn\s*ID\b" + REFERENCE_SEPARATOR + r"([A-Za-z0-9]+)")),
    ("txn_no", re.compile(r"(?i)\bTxn\s*No\b" + REFERENCE_SEPARATOR + r"([A-Za-z0-9]+)")),
    ("transaction_id", re.compile(r"(?i)\bTransaction\s*ID\b" + REFERENCE_SEPARATOR + r"([A-Za-z0-9]+)")),
    ("transaction_no", re.compile(r"(?i)\bTransaction\s*No\b" + REFERENCE_SEPARATOR + r"([A-Za-z0-9]+)")),
    ("ref_no", re.compile(r"(?i)\bRef\s*No\b" + REFERENCE_SEPARATOR + r"([A-Za-z0-9]+)")),
    ("reference_no", re.compile(r"(?i)\bReference\s*No\b" + REFERENCE_SEPARATOR + r"([A-Za-z0-9]+)")),
    ("card_last4", re.compile(r"(?i)\bCard\s*(?:no\.?\s*)?(?:ending\s*)?[X*]{2,}(\d{4})\b")),
    ("imps_p2a", re.compile(r"(?i)\bIMPS/P2A/(\w+)")),
    ("upi_ref", re.compile(r"(?i)\bUPI\s*Ref\b" + REFERENCE_SEPARATOR + r"([A-Za-z0-9]+)")),
)
