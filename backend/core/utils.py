import uuid

from config import settings


def new_id(prefix: str) -> str:
    """Opaque identifier, e.g. ord_3f9a1c2b7d4e."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def round_money(amount: float) -> float:
    return round(float(amount), 2)


def strip_mongo_id(doc: dict) -> dict:
    return {k: v for k, v in doc.items() if k != "_id"}


def mask_phone(phone: str) -> str:
    """
    Keep the home country code (or just "+" for foreign numbers) and the
    last 2 digits.
    +62 812 3456 7890 -> +62 ••• •• 90
    """
    if not phone:
        return ""

    clean_phone = phone.replace(" ", "")

    if len(clean_phone) <= 4:
        return "••••"

    if clean_phone.startswith(settings.PHONE_COUNTRY_CODE):
        prefix = settings.PHONE_COUNTRY_CODE
    elif clean_phone.startswith("+"):
        prefix = "+"
    else:
        prefix = ""
    suffix = clean_phone[-2:]

    return f"{prefix} ••• •• {suffix}" if prefix else f"••• •• {suffix}"
