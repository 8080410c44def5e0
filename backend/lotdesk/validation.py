from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models import PRODUCT_GRADES


# Maximum price: 9,999,999,999.99 fits Numeric(12, 2)
MAX_PRICE = Decimal("9999999999.99")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary), by column key
    - required_on_create: fields required for POST
    - aliases: JSON field name -> column key (the API speaks camelCase)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=dict)

    def column_key(self, name: str) -> str:
        return self.aliases.get(name, name)

    def external_name(self, key: str) -> str:
        for external, column in self.aliases.items():
            if column == key:
                return external
        return key


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any, label: str):
    coltype = col.type

    if value is None:
        return None

    # Decimal amounts - accept ints, floats and numeric strings, reject booleans
    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{label} must be a number")
        if isinstance(value, (int, float, Decimal)):
            raw = str(value)
        elif isinstance(value, str):
            raw = value.strip()
            if not raw:
                raise ValidationError(f"{label} must be a number")
        else:
            raise ValidationError(f"{label} must be a number")
        try:
            number = Decimal(raw)
        except InvalidOperation:
            raise ValidationError(f"{label} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{label} must be a finite number")
        return number

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or 'e' in stripped.lower() or '.' in stripped:
                raise ValidationError(f"{label} must be an integer")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{label} must be an integer")
        raise ValidationError(f"{label} must be an integer")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValidationError(f"{label} must be a boolean")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{label} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column key, with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cols = _columns_by_key(model)
    # Server-managed fields are silently ignored (clients echo them back on edit)
    ignored = {"id", "_id", "createdAt", "updatedAt", "__v"}

    normalized: dict[str, tuple[str, Any]] = {}
    for name, raw in payload.items():
        if name in ignored:
            continue
        key = policy.column_key(name)
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {name}")
        if key not in cols:
            raise ValidationError(f"Unknown field: {name}")
        normalized[key] = (name, raw)

    if not partial:
        missing = [
            policy.external_name(f)
            for f in sorted(policy.required_on_create)
            if f not in normalized
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    patch: dict = {}

    for key, (label, raw) in normalized.items():
        col = cols[key]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{label} cannot be null")
            patch[key] = None
            continue

        val = _coerce_value(col, raw, label)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{label} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{label} exceeds max length {col.type.length}")

        patch[key] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key, label in (
        ("channel_price", "channelPrice"),
        ("ss_price", "ssPrice"),
        ("floated_price", "floatedPrice"),
    ):
        if key in patch and patch[key] is not None:
            price = patch[key]
            if price < 0:
                raise ValidationError(f"{label} must be >= 0")
            if price > MAX_PRICE:
                raise ValidationError(f"{label} cannot exceed {MAX_PRICE}")

    if "grade" in patch and patch["grade"] not in PRODUCT_GRADES:
        raise ValidationError(f"grade must be one of: {', '.join(PRODUCT_GRADES)}")


SECRET_FIELDS = frozenset({"passkey", "password"})


def require_fields(payload: dict, *names: str) -> dict:
    """
    Minimal presence check for JSON bodies that do not map onto a model
    (login, registration, payment submission). Returns stripped string values;
    secrets in SECRET_FIELDS are returned exactly as sent.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    values = {}
    missing = []
    for name in names:
        raw = payload.get(name)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            missing.append(name)
            continue
        if isinstance(raw, (dict, list, bool)):
            raise ValidationError(f"{name} must be a string")
        value = str(raw)
        values[name] = value if name in SECRET_FIELDS else value.strip()

    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return values


def parse_bool(value: Any, label: str) -> bool:
    """Strict boolean for admin override bodies (isActive, isVerified, ...)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{label} must be a boolean")
