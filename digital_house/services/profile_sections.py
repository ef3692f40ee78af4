"""Allow-listed JSON profile sections.

Every section column is decoded at the storage boundary into a
:class:`StoredSection` before any business logic looks at it. Rows written
by older clients may hold a JSON *string* instead of an object, or an object
whose keys are the character indexes of a string that was spread into it
(``{"0": "{", "1": "\\"", ...}``). Decoding separates those legacy shapes
from the normal path; :func:`normalize_json_column` then keeps only the
allow-listed keys, and is applied on every read and on every write-merge.
"""
import json
import math
from dataclasses import dataclass

SECTION_ALLOWED_KEYS: dict[str, frozenset[str]] = {
    "community": frozenset({"kulam", "kulaDeivam", "nativeVillage", "nativeTaluk"}),
    "personal": frozenset(
        {
            "currentLocation",
            "occupation",
            "instagram",
            "facebook",
            "linkedin",
            "hobbies",
            "fatherName",
            "maritalStatus",
        }
    ),
    "matrimony": frozenset(
        {
            "matrimonyProfileActive",
            "lookingFor",
            "education",
            "maritalStatus",
            "rashi",
            "nakshatram",
            "dosham",
            "familyType",
            "familyStatus",
            "motherName",
            "fatherOccupation",
            "numberOfSiblings",
            "partnerPreferences",
            "horoscopeDocumentUrl",
        }
    ),
    "business": frozenset(
        {
            "businessProfileActive",
            "businessName",
            "businessType",
            "businessDescription",
            "businessAddress",
            "businessPhone",
            "businessWebsite",
        }
    ),
    "family": frozenset(
        {"familyMemberId1", "familyMemberId2", "familyMemberId3", "familyMemberId4", "familyMemberId5"}
    ),
}

JSON_SECTIONS = tuple(SECTION_ALLOWED_KEYS)
RESTRICTED_SECTIONS = ("matrimony", "business")
IMMEDIATE_SECTIONS = ("community", "personal", "family")

# Completion weights: number of fields counted per section.
BASIC_FIELDS = 7
COMMUNITY_FIELDS = 4
PERSONAL_FIELDS = 7
FAMILY_FIELDS = 5
MATRIMONY_FIELDS = 14
BUSINESS_FIELDS = 7


@dataclass(frozen=True)
class StoredSection:
    """Decoded form of a raw section column.

    ``kind`` is one of ``object`` (a mapping as stored), ``legacy_string``
    (a JSON object that was stored as a string), ``invalid`` (anything that
    is not a JSON object) or ``empty`` (NULL).
    """

    kind: str
    data: dict | None = None

    @property
    def usable(self) -> bool:
        return self.data is not None


def decode_stored_section(value) -> StoredSection:
    if value is None:
        return StoredSection("empty")
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return StoredSection("invalid")
        if isinstance(parsed, dict):
            return StoredSection("legacy_string", parsed)
        return StoredSection("invalid")
    if isinstance(value, dict):
        return StoredSection("object", value)
    return StoredSection("invalid")


def _is_numeric_key(key) -> bool:
    return isinstance(key, str) and key.isdigit()


def normalize_json_column(value, allowed_keys=None) -> dict | None:
    """Return only the allowed keys of a stored section, or ``None`` when nothing survives.

    Without an allow-list, purely numeric keys (the trace of a spread string)
    are dropped and everything else is kept.
    """
    stored = decode_stored_section(value)
    if not stored.usable:
        return None

    if allowed_keys is not None:
        out = {key: stored.data[key] for key in allowed_keys if key in stored.data}
    else:
        out = {key: val for key, val in stored.data.items() if not _is_numeric_key(key)}
    return out or None


def merge_section(current, payload: dict, allowed_keys) -> dict:
    """Merge ``payload`` over the normalized ``current`` data; payload wins on conflicts."""
    merged = dict(normalize_json_column(current, allowed_keys) or {})
    merged.update(payload)
    return {key: val for key, val in merged.items() if key in allowed_keys}


def is_filled(value) -> bool:
    if value is None or value == "":
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def count_filled(data: dict | None) -> int:
    if not data:
        return 0
    return sum(1 for value in data.values() if is_filled(value))


@dataclass(frozen=True)
class Completion:
    percentage: int
    show_matrimony: bool
    show_business: bool


def compute_completion(basic: dict, sections: dict[str, dict | None]) -> Completion:
    """Weighted share of filled fields.

    Matrimony and business only count once their own ``*ProfileActive`` flag
    is true.
    """
    matrimony = sections.get("matrimony") or {}
    business = sections.get("business") or {}
    show_matrimony = matrimony.get("matrimonyProfileActive") is True
    show_business = business.get("businessProfileActive") is True

    total = BASIC_FIELDS + COMMUNITY_FIELDS + PERSONAL_FIELDS + FAMILY_FIELDS
    filled = count_filled(basic)
    filled += count_filled(sections.get("community"))
    filled += count_filled(sections.get("personal"))
    filled += count_filled(sections.get("family"))
    if show_matrimony:
        total += MATRIMONY_FIELDS
        filled += count_filled(matrimony)
    if show_business:
        total += BUSINESS_FIELDS
        filled += count_filled(business)

    # Half-up rounding, not banker's rounding.
    percentage = math.floor(100 * filled / total + 0.5) if total else 0
    return Completion(
        percentage=max(0, min(100, percentage)),
        show_matrimony=show_matrimony,
        show_business=show_business,
    )
