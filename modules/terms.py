"""
Legal terms for each waiver kind.

The same text is shown in the scrollable terms panel and printed on the
first page(s) of the waiver PDF. ``{org}`` is replaced with the organisation
name from the portal context.
"""

REPAIR_TERMS = """\
{org} Device Repair Terms and Conditions

1. Service Agreement
By submitting this waiver, you (the "Customer") agree to the following terms and conditions for device repair services provided by {org} (the "Company"):
- The Company will attempt to repair the device to the best of its ability but cannot guarantee that all repairs will be successful.
- The Customer acknowledges that the device may already have pre-existing damage not related to the specific repair being requested.
- The Company is not responsible for any data loss that may occur during the repair process. It is the Customer's responsibility to back up all data before submitting the device for repair.

2. Warranty Information
All repairs come with a limited warranty subject to the following conditions:
- Screen repairs and replacements are warranted for 30 days from the date of repair.
- Battery replacements are warranted for 90 days from the date of repair.
- Other internal component repairs are warranted for 60 days from the date of repair.
- The warranty covers only the specific part that was repaired or replaced.
- The warranty is void if the device shows signs of water damage, physical damage, or unauthorized repair attempts after our service.

3. Payment and Fees
The Customer agrees to the following payment terms:
- Full payment is due upon completion of the repair before the device is returned.
- If a repair cannot be completed, a diagnostic fee may still apply.
- If additional issues are discovered during repair, the Customer will be notified before any additional work is performed or charges are incurred.
- Devices left unclaimed for more than 30 days after repair completion may be subject to storage fees or may be considered abandoned.

4. Liability Limitations
The Customer acknowledges the following limitations of liability:
- The Company's maximum liability is limited to the cost of the repair or the current market value of the device, whichever is less.
- The Company is not liable for any indirect, consequential, or incidental damages, including but not limited to loss of business, loss of profits, or loss of data.
- For devices with water damage, there is no guarantee that all issues can be resolved, and additional problems may arise after repair.

5. Parts and Service
Regarding parts used in repairs:
- The Company may use new, used, or refurbished parts of similar quality and functionality for repairs.
- Original manufacturer parts will be used when specified and available, which may affect the final repair cost.
- Third-party parts may be used when original parts are unavailable or when requested by the Customer to reduce costs.
- The Customer acknowledges that the use of third-party parts may affect the device's functionality with certain features.

6. Customer Responsibilities
The Customer agrees to the following responsibilities:
- To remove any SIM cards, memory cards, cases, screen protectors, or other accessories before submitting the device for repair.
- To disable any activation locks, passwords, or security features that may prevent the Company from accessing the device for repair.
- To provide accurate information about the device and the issues requiring repair.
- To back up all data before submitting the device for repair.

7. Repair Timeframes
Regarding repair timeframes:
- The Company will provide an estimated timeframe for completion of repairs, but this is not guaranteed.
- Complex repairs may take longer than initially estimated if additional issues are discovered.
- The Company will make reasonable efforts to complete repairs in a timely manner.
- The Customer will be notified of any significant delays in the repair process.

8. Privacy Policy
Regarding customer privacy:
- The Company respects customer privacy and will not access personal data on devices except as necessary to perform repairs.
- Customer information will be handled in accordance with our Privacy Policy, available upon request.
- The Company may contact the Customer using the provided contact information for matters related to the repair service.

9. Dispute Resolution
In case of disputes:
- The Customer agrees to notify the Company of any issues with the repair within the warranty period.
- The Company will have the opportunity to inspect the device and address any warranty claims before the Customer seeks third-party repairs.
- Any disputes that cannot be resolved through direct negotiation will be subject to mediation before any legal action is taken.

10. Acceptance of Terms
By signing this waiver:
- The Customer acknowledges having read and understood all terms and conditions.
- The Customer agrees to be bound by these terms and conditions.
- The Customer authorizes the Company to perform the requested repairs on the specified device.
- These terms represent the entire agreement between the Customer and the Company regarding the repair service.
"""

SELLING_TERMS = """\
{org} Device Selling Terms and Conditions

By purchasing a device from {org}, you acknowledge that you have read, understood, and agreed to the following Terms & Conditions:

1. Purchase Agreement & Condition of Sale
You, the customer, understand that {org} is selling the device to you in "AS IS" condition. All devices sold by {org} are certified pre-owned with original parts, unless otherwise specified by us.

2. Warranty & Customer Responsibility
2.1 Warranty Coverage
All purchased devices come with a 30-day warranty from {org}.

2.2 Warranty Exclusions
If the customer damages the device, {org} is not responsible for repairs or replacements. However, {org} may offer a discount on repair services in such cases.

3. Carrier & Unlocking Information
All devices sold by {org} are carrier-unlocked. Device unlock information is available upon request. {org} is not responsible for carrier-related issues or services not provided by us.

4. Payment & Fraud Prevention
4.1 Debit/Credit Card Transactions
All debit/credit card purchases require ID verification and customer signature.

4.2 Cash Payments
All cash transactions will be checked for counterfeit currency to prevent fraudulent transactions.

5. Legal Compliance & Ethics
{org} abides by all local laws and city ordinances within its operating jurisdiction. We do not tolerate:
- Dishonesty in transactions.
- Stolen or fraudulent devices.
- Forgery or misrepresentation of customer information.

Acknowledgment & Agreement
By signing below, you acknowledge that you have read, understood, and agreed to the Terms & Conditions set forth by {org}.
"""

PURCHASE_TERMS = """\
{org} Device Purchase Terms and Conditions

1. Authorization & Final Sale
You, the customer, authorize {org} to purchase your personal device. Once the agreed-upon amount has been given for the device, the sale is final, and no returns or refunds will be permitted.

2. Verification & Legitimacy Checks

2.1 Device Verification
Before completing the purchase, {org} will verify the device to ensure:
- The device is not flagged for non-payment, stolen, or lost status.
- The purchase date is valid and verifiable.

2.2 Proof of Purchase Requirement
{org} reserves the right to request a receipt or other proof of purchase. If the device fails verification checks (e.g., reported stolen or lost), {org} reserves the right to refuse purchase and, in certain cases, will contact Law Enforcement.

2.3 Stolen & Lost Devices
If a device sold to {org} is later reported as stolen or lost, we will first attempt to contact the seller. Failure to respond or comply may result in {org} reporting the incident to local Law Enforcement.

3. Customer Identification & Age Restriction

3.1 ID Validation
{org} will validate your government-issued ID before purchasing any device.

3.2 Age Requirement
{org} will not purchase any device from individuals under the age of 18. If you are under 18, a parent or legal guardian must be present for the transaction.

4. Legal Compliance & Ethics
{org} abides by all local laws and city ordinances within its operating jurisdiction. We do not tolerate:
- Dishonesty in transactions.
- Stolen or fraudulent devices.
- Forgery or misrepresentation of customer information.

Acknowledgment & Agreement
By signing below, you acknowledge that you have read, understood, and agreed to the Terms & Conditions set forth by {org}.
"""


def terms_for(template: str, organization_name: str) -> str:
    """Fill the organisation name into a terms template."""
    return template.replace("{org}", organization_name)
