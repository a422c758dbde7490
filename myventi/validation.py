"""
Form validation for vehicles, fuel entries and service records.

Each validate_* function returns a cleaned dict ready for the store, or
raises ValidationError with a field -> message map. Nothing here touches
the store.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .errors import ConsistencyError, ValidationError
from .status import VehicleStatus, VehicleType

# Largest allowed |amount - quantity * price_per_unit|
TOLERANCE = 0.05

YEAR_MIN = 1900
NAME_LENGTH = (2, 50)
MAKE_LENGTH = (2, 30)
MODEL_LENGTH = (1, 30)
DESCRIPTION_LENGTH = (1, 500)
STATION_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 500

# Plausibility ceilings per fill-up: gallons for gas/hybrid, kWh for electric
QUANTITY_CEILINGS = {
    VehicleType.GAS: 200.0,
    VehicleType.HYBRID: 200.0,
    VehicleType.ELECTRIC: 500.0,
}

_ALLOWED_TEXT = re.compile(r"^[a-zA-Z0-9\s\-']+$")

VEHICLE_FIELDS = ("name", "year", "make", "model", "type", "status")


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(
    value: Any, field: str, label: str, bounds, errors: Dict[str, str]
) -> Optional[str]:
    if _blank(value):
        errors[field] = f"{label} is required"
        return None
    text = str(value).strip()
    low, high = bounds
    if len(text) < low:
        errors[field] = f"{label} must be at least {low} characters long"
    elif len(text) > high:
        errors[field] = f"{label} must be {high} characters or less"
    elif not _ALLOWED_TEXT.match(text):
        errors[field] = f"{label} contains invalid characters"
    return text


def _year(value: Any, errors: Dict[str, str], today: date) -> Optional[int]:
    year_max = today.year + 1
    try:
        year = int(value)
    except (TypeError, ValueError):
        errors["year"] = f"Year must be between {YEAR_MIN} and {year_max}"
        return None
    if not YEAR_MIN <= year <= year_max:
        errors["year"] = f"Year must be between {YEAR_MIN} and {year_max}"
    return year


def _enum(value: Any, enum_cls, field: str, errors: Dict[str, str]):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        errors[field] = f"Please select a valid {field}"
        return None


def _date(value: Any, field: str, label: str, errors: Dict[str, str], today: date) -> Optional[str]:
    if _blank(value):
        errors[field] = f"{label} is required"
        return None
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = date.fromisoformat(str(value).strip()[:10])
        except ValueError:
            errors[field] = f"{label} must be a YYYY-MM-DD date"
            return None
    if parsed > today:
        errors[field] = f"{label} cannot be in the future"
    return parsed.isoformat()


def _number(value: Any, field: str, label: str, errors: Dict[str, str]) -> Optional[float]:
    if _blank(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors[field] = f"{label} must be a number"
        return None
    if number != number:  # NaN
        errors[field] = f"{label} must be a number"
        return None
    return number


def _odometer(value: Any, field: str, errors: Dict[str, str]) -> Optional[int]:
    if _blank(value):
        errors[field] = "Odometer reading is required"
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors[field] = "Odometer reading must be a whole number"
        return None
    if not number.is_integer():
        errors[field] = "Odometer reading must be a whole number"
        return None
    if number < 0:
        errors[field] = "Odometer reading cannot be negative"
    return int(number)


def _optional_text(value: Any, limit: int) -> Optional[str]:
    if _blank(value):
        return None
    return str(value).strip()[:limit]


def _raise_if(errors: Dict[str, str], what: str) -> None:
    if errors:
        summary = "; ".join(f"{k}: {v}" for k, v in errors.items())
        raise ValidationError(f"Invalid {what}: {summary}", errors)


# =============================================================================
# Vehicles
# =============================================================================


def validate_vehicle_form(form: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Validate a full vehicle form. Status defaults to active."""
    today = today or date.today()
    errors: Dict[str, str] = {}
    cleaned = {
        "name": _text(form.get("name"), "name", "Name", NAME_LENGTH, errors),
        "year": _year(form.get("year"), errors, today),
        "make": _text(form.get("make"), "make", "Make", MAKE_LENGTH, errors),
        "model": _text(form.get("model"), "model", "Model", MODEL_LENGTH, errors),
        "type": _enum(form.get("type"), VehicleType, "type", errors),
        "status": _enum(
            form.get("status") or VehicleStatus.ACTIVE, VehicleStatus, "status", errors
        ),
    }
    _raise_if(errors, "vehicle")
    return cleaned


def validate_vehicle_update(changes: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Validate only the vehicle fields present in `changes`."""
    today = today or date.today()
    errors: Dict[str, str] = {}
    unknown = [k for k in changes if k not in VEHICLE_FIELDS]
    for key in unknown:
        errors[key] = "Unknown vehicle field"

    cleaned: Dict[str, Any] = {}
    if "name" in changes:
        cleaned["name"] = _text(changes["name"], "name", "Name", NAME_LENGTH, errors)
    if "year" in changes:
        cleaned["year"] = _year(changes["year"], errors, today)
    if "make" in changes:
        cleaned["make"] = _text(changes["make"], "make", "Make", MAKE_LENGTH, errors)
    if "model" in changes:
        cleaned["model"] = _text(changes["model"], "model", "Model", MODEL_LENGTH, errors)
    if "type" in changes:
        cleaned["type"] = _enum(changes["type"], VehicleType, "type", errors)
    if "status" in changes:
        cleaned["status"] = _enum(changes["status"], VehicleStatus, "status", errors)
    _raise_if(errors, "vehicle")
    return cleaned


# =============================================================================
# Fuel entries
# =============================================================================


def reconcile_amount(
    amount: Optional[float],
    quantity: Optional[float],
    price_per_unit: Optional[float],
):
    """
    Fill in whichever of amount/quantity/price_per_unit is missing.

    Two of the three are required. When all three are given they must agree
    within TOLERANCE. Amount is rounded to cents before any check or
    derivation, so the stored amount is the one that was compared; a derived
    quantity or price is kept at full precision.
    """
    given = sum(v is not None for v in (amount, quantity, price_per_unit))
    if given < 2:
        raise ValidationError(
            "Two of amount, quantity and price per unit are required",
            {"amount": "Provide at least two of amount, quantity and price per unit"},
        )
    if amount is not None:
        amount = round(amount, 2)
    if amount is None:
        amount = round(quantity * price_per_unit, 2)
    elif quantity is None:
        quantity = amount / price_per_unit
    elif price_per_unit is None:
        price_per_unit = amount / quantity
    else:
        expected = quantity * price_per_unit
        if abs(amount - expected) > TOLERANCE:
            raise ConsistencyError(
                f"Total cost {amount:.2f} does not match quantity x price per unit "
                f"({expected:.2f})",
                {"amount": "Total cost does not match quantity x price per unit"},
            )
    return amount, quantity, price_per_unit


def check_quantity_ceiling(quantity: float, vehicle_type: VehicleType) -> None:
    """Reject implausibly large fill-ups for the vehicle type."""
    ceiling = QUANTITY_CEILINGS[vehicle_type]
    if quantity > ceiling:
        unit = "kWh" if vehicle_type == VehicleType.ELECTRIC else "gallons"
        raise ValidationError(
            f"Quantity {quantity:g} exceeds the {ceiling:g} {unit} limit",
            {"quantity": f"Quantity must be at most {ceiling:g} {unit}"},
        )


def validate_fuel_form(
    form: Mapping[str, Any], today: Optional[date] = None
) -> Dict[str, Any]:
    """
    Validate a fuel form (storage units: gallons or kWh, miles).

    Returns the cleaned row fields without id, mpg or timestamps. The
    quantity ceiling depends on the vehicle and is checked by the caller
    with check_quantity_ceiling.
    """
    today = today or date.today()
    errors: Dict[str, str] = {}

    vehicle_id = form.get("vehicle_id")
    if _blank(vehicle_id):
        errors["vehicle_id"] = "Vehicle selection is required"
    entry_date = _date(form.get("date"), "date", "Fill date", errors, today)
    mileage = _odometer(form.get("mileage"), "mileage", errors)

    amount = _number(form.get("amount"), "amount", "Total cost", errors)
    quantity = _number(form.get("quantity"), "quantity", "Quantity", errors)
    price = _number(form.get("price_per_unit"), "price_per_unit", "Price per unit", errors)
    for field, label, value in (
        ("amount", "Total cost", amount),
        ("quantity", "Quantity", quantity),
        ("price_per_unit", "Price per unit", price),
    ):
        if value is not None and value <= 0:
            errors[field] = f"{label} must be greater than 0"
    _raise_if(errors, "fuel entry")

    amount, quantity, price = reconcile_amount(amount, quantity, price)

    return {
        "vehicle_id": str(vehicle_id).strip(),
        "date": entry_date,
        "amount": amount,
        "quantity": quantity,
        "price_per_unit": price,
        "mileage": mileage,
        "fuel_station": _optional_text(form.get("fuel_station"), STATION_MAX_LENGTH),
        "notes": _optional_text(form.get("notes"), NOTES_MAX_LENGTH),
    }


# =============================================================================
# Service records
# =============================================================================


def validate_service_form(form: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Validate a service record form."""
    today = today or date.today()
    errors: Dict[str, str] = {}

    vehicle_id = form.get("vehicle_id")
    if _blank(vehicle_id):
        errors["vehicle_id"] = "Vehicle selection is required"
    service_date = _date(form.get("date"), "date", "Service date", errors, today)

    service_type = form.get("type")
    if _blank(service_type):
        errors["type"] = "Service type is required"

    description = form.get("description")
    low, high = DESCRIPTION_LENGTH
    if _blank(description) or len(str(description).strip()) < low:
        errors["description"] = f"Description must be at least {low} characters long"
    elif len(str(description).strip()) > high:
        errors["description"] = f"Description must be {high} characters or less"

    cost = _number(form.get("cost"), "cost", "Cost", errors)
    if cost is None and "cost" not in errors:
        errors["cost"] = "Service cost is required"
    elif cost is not None and cost < 0:
        errors["cost"] = "Cost cannot be negative"

    mileage = _odometer(form.get("mileage"), "mileage", errors)
    _raise_if(errors, "service record")

    completed = form.get("is_completed")
    return {
        "vehicle_id": str(vehicle_id).strip(),
        "date": service_date,
        "type": str(service_type).strip(),
        "description": str(description).strip(),
        "cost": round(cost, 2),
        "mileage": mileage,
        "notes": _optional_text(form.get("notes"), NOTES_MAX_LENGTH),
        "is_completed": True if completed is None else bool(completed),
    }
