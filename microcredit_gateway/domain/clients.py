"""Client profiles and the onboarding rules a loan applicant must satisfy"""

import enum
import re
from dataclasses import dataclass
from datetime import date
from typing import List, Union

from microcredit_gateway.domain.exceptions import ValidationError
from microcredit_gateway.utils.date_utils import age_on

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[0-9]{9}")
DNI_PATTERN = re.compile(r"[0-9]{8}")
RUC_PATTERN = re.compile(r"[0-9]{11}")


class ClientKind(str, enum.Enum):
    NATURAL = "NATURAL"
    JURIDICAL = "JURIDICAL"


class Declaration(str, enum.Enum):
    """Sworn statements the client signs alongside the contract"""

    PEP = "PEP"  # politically exposed person
    UIT = "UIT"  # amount above one tax unit


@dataclass(frozen=True)
class NaturalPerson:
    dni: str
    first_name: str
    last_name: str
    birth_date: date
    email: str
    phone: str
    address: str
    is_pep: bool = False
    kind: ClientKind = ClientKind.NATURAL


@dataclass(frozen=True)
class JuridicalPerson:
    ruc: str
    business_name: str
    fiscal_address: str
    incorporation_date: date
    representative_dni: str
    representative_name: str
    email: str
    phone: str
    is_pep: bool = False
    kind: ClientKind = ClientKind.JURIDICAL


ClientProfile = Union[NaturalPerson, JuridicalPerson]


def _require(fields: dict, message: str) -> None:
    missing = [name for name, value in fields.items() if value is None or (isinstance(value, str) and not value.strip())]
    if missing:
        raise ValidationError(f"{message}: {', '.join(missing)}")


def validate_client(profile: ClientProfile, today: date, legal_age_years: int = 18) -> None:
    """
    Check a client record before a loan can be registered for it.

    Natural persons need a DNI (8 digits) and must be of legal age;
    companies need an RUC (11 digits) and a legal representative with a DNI.
    Both need a well-formed email and a 9-digit phone.

    Raises:
        ValidationError: First rule the profile breaks
    """
    if profile.kind == ClientKind.JURIDICAL:
        _require(
            {
                "ruc": profile.ruc,
                "business_name": profile.business_name,
                "fiscal_address": profile.fiscal_address,
                "incorporation_date": profile.incorporation_date,
                "representative_dni": profile.representative_dni,
                "representative_name": profile.representative_name,
            },
            "Missing company fields",
        )
        if not RUC_PATTERN.fullmatch(profile.ruc):
            raise ValidationError("RUC must have 11 digits")
        if not DNI_PATTERN.fullmatch(profile.representative_dni):
            raise ValidationError("Representative DNI must have 8 digits")
    else:
        _require(
            {
                "dni": profile.dni,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "birth_date": profile.birth_date,
                "address": profile.address,
            },
            "Missing client fields",
        )
        if not DNI_PATTERN.fullmatch(profile.dni):
            raise ValidationError("DNI must have 8 digits")
        if age_on(profile.birth_date, today) < legal_age_years:
            raise ValidationError(f"Client must be at least {legal_age_years} years old")

    if not EMAIL_PATTERN.fullmatch(profile.email or ""):
        raise ValidationError("Invalid email address")
    if not PHONE_PATTERN.fullmatch(profile.phone or ""):
        raise ValidationError("Phone number must have 9 digits")


def requires_uit_declaration(amount_cents: int, uit_cents: int) -> bool:
    """Loans strictly above one UIT need a sworn declaration of funds"""
    return amount_cents > uit_cents


def required_declarations(profile: ClientProfile, amount_cents: int, uit_cents: int) -> List[Declaration]:
    declarations = []
    if profile.is_pep:
        declarations.append(Declaration.PEP)
    if requires_uit_declaration(amount_cents, uit_cents):
        declarations.append(Declaration.UIT)
    return declarations
