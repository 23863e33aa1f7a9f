"""
utils/constants.py

Purpose: Centralized static content

- User-facing response messages
- Receipt email subject and body

(Prevents hardcoding across the codebase)
"""

# ============================================================
# RESPONSES
# ============================================================

EMAIL_SENT_MESSAGE = "Email sent successfully"

# ============================================================
# RECEIPT EMAIL
# ============================================================

RECEIPT_EMAIL_SUBJECT = "Your Receipt"

RECEIPT_EMAIL_TEXT = """Hello,

Please find your receipt attached.

Thank you for your business.

-- Receiptify
"""

RECEIPT_ATTACHMENT_NAME = "receipt.pdf"
RECEIPT_ATTACHMENT_TYPE = "application/pdf"
