"""
Dividend statements and other documents used across the test suite.
"""
from datetime import date
from typing import List, Optional

from taxdocs.models import ExtractedText


COMPUTERSHARE_SAMPLE = """
COMPUTERSHARE INVESTOR SERVICES PTY LIMITED
Level 3, 60 Carrington Street, Sydney NSW 2000
ABN 48 078 279 277

DIVIDEND ADVICE

Company: COMMONWEALTH BANK OF AUSTRALIA
ASX Code: CBA
ABN: 48 123 123 124

Security Details:
Holder: John Smith
SRN: X0001234567
Shares Held: 500

Dividend Details:
Dividend per Share: $2.15
Franked Amount: $1075.00
Unfranked Amount: $0.00
Franking Credits: $461.36
Franking Percentage: 100%

Payment Details:
Payment Date: 15/03/2024
Record Date: 21/02/2024
Amount Payable: $1075.00

Direct Credit to: Account ending in 1234
"""

LINK_SAMPLE = """
Link Market Services Limited
Level 12, 680 George Street, Sydney NSW 2000

DIVIDEND STATEMENT

Issuer: BHP Group Limited
Security Code: BHP
ABN: 49 004 028 077

Holding Details:
Shareholder: Jane Doe
Number of Shares: 1,250

Distribution Details:
Gross Dividend: $2,875.00
Fully Franked: $2,875.00
Franking Credit: $1,232.14
Unfranked: $0.00

Payment Information:
Date Paid: 28/09/2024
Record Date: 07/09/2024
Payment Method: Direct Credit

Franking Percentage: 100%
"""

BOARDROOM_SAMPLE = """
Boardroom Pty Limited
Level 12, 225 George Street, Sydney NSW 2000
ABN: 14 003 209 836

DIVIDEND PAYMENT ADVICE

Company Name: Telstra Corporation Limited
ASX: TLS
Australian Company Number: 051 775 556

Registered Holder: Robert Johnson
Holding: 2,000 shares

Dividend Information:
Dividend Amount: $340.00
Franked Dividend: $340.00
Unfranked Dividend: $0.00
Imputation Credits: $145.71

Payment Date: 31/08/2024
Entitlement Date: 24/08/2024
"""

DIRECT_SAMPLE = """
Wesfarmers Limited
ABN 28 008 984 049

DIVIDEND STATEMENT

Shareholder: Mary Williams
Holding: 800 shares

Final Dividend 2024:
Dividend per Share: $1.03
Total Payment: $824.00
Fully Franked at 30%
Franking Credits: $353.14

Payment Date: 10/04/2024
Record Date: 28/02/2024
"""

PARTIALLY_FRANKED_SAMPLE = """
COMPUTERSHARE

DIVIDEND ADVICE

Company: XYZ Resources Limited
ASX Code: XYZ

Shareholder: Test User
Shares Held: 1,000

Dividend Details:
Gross Dividend: $500.00
Franked Amount: $250.00
Unfranked Amount: $250.00
Franking Credits: $107.14
Franking Percentage: 50%

Payment Date: 15/06/2024
Record Date: 01/06/2024
"""

UNFRANKED_SAMPLE = """
Link Market Services

DIVIDEND STATEMENT

Issuer: International Holdings Ltd
Code: IHL

Holder: Test Investor
Units: 5,000

Distribution:
Amount Payable: $750.00
Unfranked Dividend: $750.00
Franked Amount: $0.00
Franking Credits: $0.00

Payment Date: 20/07/2024
"""

INCOMPLETE_SAMPLE = """
Some Company Limited

Dividend Advice

Shareholder: Unknown
Dividend Amount: $100.00
Payment Date: 15/03/2024
"""

BANK_STATEMENT_SAMPLE = """
ANZ Bank Statement
Account Number: 1234 5678
BSB: 012-345

Opening Balance $1,000.00
01/03/2024 Deposit Salary 2,500.00
05/03/2024 Withdrawal ATM 200.00
Closing Balance $3,300.00
"""

INVOICE_SAMPLE = """
INVOICE
Invoice Number: INV-0042
Bill To: Acme Pty Ltd
Payment Terms: Net 30
Due Date: 01/02/2024

Line Item: Consulting  $1,500.00
Amount Due: $1,500.00
"""

CONTRACT_SAMPLE = """
SERVICES AGREEMENT

This Agreement is made between the parties named below.
Whereas the client wishes to engage the contractor, the parties hereby agree.
Termination: either party may terminate for breach.
Governing Law: New South Wales.

Signed by the parties on the effective date.
"""

RECEIPT_SAMPLE = """
CORNER STORE
Receipt No: 10023

Milk 2L      $3.50
Bread        $4.00
Subtotal     $7.50
GST          $0.68
Total        $7.50
EFTPOS
Thank you for shopping with us
"""

FIXED_TODAY = date(2024, 5, 1)


class FakeTextExtractor:
    """TextExtractor that returns canned text instead of reading PDFs."""

    def __init__(self, text: str = "", page_count: int = 1, error: Optional[Exception] = None):
        self.text = text
        self.page_count = page_count
        self.error = error
        self.calls: List[bytes] = []

    async def extract_text(self, content: bytes) -> ExtractedText:
        self.calls.append(content)
        if self.error is not None:
            raise self.error
        return ExtractedText(text=self.text, page_count=self.page_count)
