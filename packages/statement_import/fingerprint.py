"""Transaction fingerprints used to flag rows that were already imported."""

import hashlib


def generate_fingerprint(date: str, amount: float, description: str) -> str:
    """Deterministic SHA256 of a statement row.

        SHA256(date[:10]|amount:.2f|DESCRIPTION)

    The description is whitespace-collapsed and uppercased so re-exports of
    the same statement produce the same hash.

    Returns:
        64-character lowercase hex digest.
    """
    normalized_date = (date or "")[:10]
    normalized_amount = f"{float(amount):.2f}"
    normalized_description = " ".join((description or "").split()).upper()

    raw = f"{normalized_date}|{normalized_amount}|{normalized_description}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
