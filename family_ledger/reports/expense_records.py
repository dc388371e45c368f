"""
Transfer records.

Money handed over from the pool (e.g. to the person paying a hospital
bill) is stored as an expense whose title starts with "Transfer to: ".
Such records count against the balance on the dashboard but are left
out of the shared expense list.
"""

TRANSFER_PREFIX = "Transfer to: "


def is_transfer_record_title(title: str) -> bool:
    return title.strip().lower().startswith(TRANSFER_PREFIX.lower())


def to_transfer_record_title(recipient: str) -> str:
    """Build the expense title for a transfer to `recipient`."""
    return f"{TRANSFER_PREFIX}{recipient.strip()}"


def get_transfer_label_from_title(title: str) -> str:
    """
    Recipient part of a transfer title.

    Non-transfer titles come back unchanged; a transfer title with no
    recipient yields "Recipient".
    """
    if not is_transfer_record_title(title):
        return title
    return title.strip()[len(TRANSFER_PREFIX):].strip() or "Recipient"
